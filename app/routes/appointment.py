from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from datetime import datetime
import logging

from app.errors import AppointmentNotFound, ClinicError
from app.extensions import db
from app.models import Appointment, Patient, Practitioner
from app.services import complete_visit
from app.utils.audit import log_audit
from app.utils.parsing import end_of_day, parse_datetime, to_int

logger = logging.getLogger(__name__)

appointment_bp = Blueprint('appointment', __name__, url_prefix='/api/agendamentos')

# Concluded is reached only through the finalize endpoint
EDITABLE_STATUSES = (Appointment.SCHEDULED, Appointment.CANCELLED)


def _get_appointment(appointment_id):
    return Appointment.query.filter(
        Appointment.id == appointment_id,
        Appointment.deleted_at.is_(None)
    ).first()


def _resolve_practitioner(raw_id):
    """(practitioner_id, error_response) from a payload value."""
    if raw_id in (None, ''):
        return None, None
    practitioner_id = to_int(raw_id, 'profissionalId')
    if not db.session.get(Practitioner, practitioner_id):
        return None, (jsonify({'success': False, 'erro': 'Profissional não encontrado'}), 400)
    return practitioner_id, None


@appointment_bp.route('', methods=['GET'])
@jwt_required()
def list_appointments():
    """
    List appointments ordered by time.
    Query params:
        inicio, fim: date range (ISO dates; both required to filter)
        pacienteId, profissionalId, status: optional filters
    """
    start = request.args.get('inicio', type=str)
    end = request.args.get('fim', type=str)

    query = Appointment.query.filter(Appointment.deleted_at.is_(None))

    if start and end:
        start_dt = parse_datetime(start, 'inicio')
        end_dt = parse_datetime(end, 'fim')
        # A bare date means the whole day
        if len(end) <= 10:
            end_dt = end_of_day(end_dt)
        query = query.filter(
            Appointment.scheduled_at >= start_dt,
            Appointment.scheduled_at <= end_dt
        )

    patient_id = request.args.get('pacienteId', type=int)
    if patient_id:
        query = query.filter(Appointment.patient_id == patient_id)
    practitioner_id = request.args.get('profissionalId', type=int)
    if practitioner_id:
        query = query.filter(Appointment.practitioner_id == practitioner_id)
    status = request.args.get('status', type=str)
    if status:
        query = query.filter(Appointment.status == status)

    appointments = query.order_by(Appointment.scheduled_at.asc()).all()
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in appointments]
    }), 200


@appointment_bp.route('/<int:appointment_id>', methods=['GET'])
@jwt_required()
def get_appointment(appointment_id):
    appointment = _get_appointment(appointment_id)
    if not appointment:
        return jsonify({'success': False, 'erro': 'Agendamento não encontrado'}), 404
    return jsonify({'success': True, 'data': appointment.to_dict()}), 200


@appointment_bp.route('', methods=['POST'])
@jwt_required()
def create_appointment():
    data = request.get_json(silent=True) or {}

    # Step 1: Validate required fields
    for field in ('dataHorario', 'pacienteId'):
        if not data.get(field):
            return jsonify({
                'success': False,
                'erro': f'Campo "{field}" é obrigatório'
            }), 400

    scheduled_at = parse_datetime(data['dataHorario'], 'dataHorario')

    # Step 2: Patient must exist
    patient_id = to_int(data['pacienteId'], 'pacienteId')
    patient = Patient.query.filter(Patient.id == patient_id, Patient.deleted_at.is_(None)).first()
    if not patient:
        return jsonify({'success': False, 'erro': 'Paciente não encontrado'}), 404

    practitioner_id, error = _resolve_practitioner(data.get('profissionalId'))
    if error:
        return error

    status = data.get('status') or Appointment.SCHEDULED
    if status not in EDITABLE_STATUSES:
        return jsonify({
            'success': False,
            'erro': f'Status inválido. Use: {", ".join(EDITABLE_STATUSES)}'
        }), 400

    # Step 3: Create
    appointment = Appointment(
        scheduled_at=scheduled_at,
        status=status,
        patient_id=patient_id,
        practitioner_id=practitioner_id,
    )
    db.session.add(appointment)
    db.session.commit()

    log_audit('appointment', 'create', entity_id=appointment.id,
              details={'patient_id': patient_id})

    return jsonify({'success': True, 'data': appointment.to_dict()}), 201


@appointment_bp.route('/<int:appointment_id>', methods=['PUT'])
@jwt_required()
def update_appointment(appointment_id):
    """Reschedule, reassign or cancel. Concluded appointments are read-only."""
    appointment = _get_appointment(appointment_id)
    if not appointment:
        return jsonify({'success': False, 'erro': 'Agendamento não encontrado'}), 404

    if appointment.status == Appointment.CONCLUDED:
        return jsonify({
            'success': False,
            'erro': 'Agendamento concluído não pode ser alterado.'
        }), 400

    data = request.get_json(silent=True) or {}

    if data.get('dataHorario'):
        appointment.scheduled_at = parse_datetime(data['dataHorario'], 'dataHorario')

    if 'status' in data and data['status']:
        if data['status'] not in EDITABLE_STATUSES:
            return jsonify({
                'success': False,
                'erro': f'Status inválido. Use: {", ".join(EDITABLE_STATUSES)}'
            }), 400
        appointment.status = data['status']

    if 'profissionalId' in data:
        practitioner_id, error = _resolve_practitioner(data['profissionalId'])
        if error:
            return error
        appointment.practitioner_id = practitioner_id

    db.session.commit()
    log_audit('appointment', 'update', entity_id=appointment_id,
              details={'status': appointment.status})

    return jsonify({'success': True, 'data': appointment.to_dict()}), 200


@appointment_bp.route('/<int:appointment_id>', methods=['DELETE'])
@jwt_required()
def delete_appointment(appointment_id):
    """Soft-delete appointment (no hard deletion of medical data)."""
    appointment = _get_appointment(appointment_id)
    if not appointment:
        return jsonify({'success': False, 'erro': 'Agendamento não encontrado'}), 404

    appointment.deleted_at = datetime.utcnow()
    db.session.commit()
    log_audit('appointment', 'delete', entity_id=appointment_id)

    return jsonify({
        'success': True,
        'mensagem': 'Agendamento removido com sucesso.'
    }), 200


# ==============================================================================
# Finalize visit: status, clinical note, supply consumption and revenue at once
# ==============================================================================
@appointment_bp.route('/<int:appointment_id>/finalizar', methods=['POST'])
@jwt_required()
def finalize_appointment(appointment_id):
    """
    Body: { textoEvolucao?, insumos?: [{produtoId, qtd}], procedimentosIds?: [id] }
    """
    data = request.get_json(silent=True) or {}

    supplies_raw = data.get('insumos') or []
    procedure_ids = data.get('procedimentosIds') or []
    if not isinstance(supplies_raw, list) or not isinstance(procedure_ids, list):
        return jsonify({
            'success': False,
            'erro': '"insumos" e "procedimentosIds" devem ser listas'
        }), 400
    if not all(isinstance(item, dict) for item in supplies_raw):
        return jsonify({
            'success': False,
            'erro': 'Cada insumo deve ter "produtoId" e "qtd"'
        }), 400

    supplies = [(item.get('produtoId'), item.get('qtd')) for item in supplies_raw]

    try:
        appointment = complete_visit(
            db.session,
            appointment_id,
            note_text=data.get('textoEvolucao'),
            consumed_supplies=supplies,
            procedure_ids=procedure_ids,
        )
    except AppointmentNotFound as e:
        return jsonify({'success': False, 'erro': e.message}), 404
    except ClinicError as e:
        logger.warning("Finalize appointment %s rejected: %s", appointment_id, e.message)
        return jsonify({'success': False, 'erro': e.message}), 400
    except Exception as e:
        db.session.rollback()
        logger.error("Error finalizing appointment %s: %s", appointment_id, e, exc_info=True)
        error_msg = 'Erro ao processar finalização.' if not current_app.debug else str(e)
        return jsonify({'success': False, 'erro': error_msg}), 500

    log_audit('appointment', 'complete', entity_id=appointment_id,
              details={'insumos': len(supplies), 'procedimentos': procedure_ids})

    return jsonify({
        'success': True,
        'mensagem': 'Atendimento finalizado com sucesso!',
        'data': appointment.to_dict()
    }), 200
