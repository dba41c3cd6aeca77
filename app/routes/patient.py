from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from datetime import datetime
import logging

from app.extensions import db
from app.models import Patient, Anamnesis, Appointment, ClinicalNote, Practitioner
from app.services import append_note
from app.utils.audit import log_audit
from app.utils.parsing import parse_datetime, to_bool, to_int, to_text

logger = logging.getLogger(__name__)

patient_bp = Blueprint('patient', __name__, url_prefix='/api/pacientes')

PATIENT_STATUSES = ('ativo', 'inativo')


def _get_patient(patient_id):
    """Active (not soft-deleted) patient or None."""
    return Patient.query.filter(
        Patient.id == patient_id,
        Patient.deleted_at.is_(None)
    ).first()


def _not_found():
    return jsonify({'success': False, 'erro': 'Paciente não encontrado'}), 404


@patient_bp.route('', methods=['GET'])
@jwt_required()
def list_patients():
    """
    List patients ordered by name.
    Query params: busca (name or WhatsApp), status
    """
    search = request.args.get('busca', '', type=str).strip()
    status = request.args.get('status', type=str)

    query = Patient.query.filter(Patient.deleted_at.is_(None))
    if search:
        query = query.filter(or_(
            Patient.name.ilike(f'%{search}%'),
            Patient.whatsapp.ilike(f'%{search}%'),
        ))
    if status:
        query = query.filter(Patient.status == status)

    patients = query.order_by(Patient.name.asc()).all()
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in patients]
    }), 200


@patient_bp.route('', methods=['POST'])
@jwt_required()
def create_patient():
    data = request.get_json(silent=True) or {}

    name = to_text(data.get('nome'), 'nome')
    whatsapp = to_text(data.get('whatsapp'), 'whatsapp')
    if not name or not whatsapp:
        return jsonify({
            'success': False,
            'erro': 'Nome e WhatsApp são obrigatórios'
        }), 400

    status = data.get('status') or 'ativo'
    if status not in PATIENT_STATUSES:
        return jsonify({
            'success': False,
            'erro': f'Status inválido. Use: {", ".join(PATIENT_STATUSES)}'
        }), 400

    patient = Patient(name=name, whatsapp=whatsapp, status=status)
    db.session.add(patient)
    db.session.commit()

    log_audit('patient', 'create', entity_id=patient.id)
    return jsonify({
        'success': True,
        'data': patient.to_dict()
    }), 201


@patient_bp.route('/<int:patient_id>', methods=['GET'])
@jwt_required()
def get_patient(patient_id):
    patient = _get_patient(patient_id)
    if not patient:
        return _not_found()
    return jsonify({'success': True, 'data': patient.to_dict()}), 200


@patient_bp.route('/<int:patient_id>', methods=['PUT'])
@jwt_required()
def update_patient(patient_id):
    patient = _get_patient(patient_id)
    if not patient:
        return _not_found()

    data = request.get_json(silent=True) or {}

    if 'nome' in data:
        name = to_text(data['nome'], 'nome')
        if not name:
            return jsonify({'success': False, 'erro': 'Nome não pode ser vazio'}), 400
        patient.name = name
    if 'whatsapp' in data:
        whatsapp = to_text(data['whatsapp'], 'whatsapp')
        if not whatsapp:
            return jsonify({'success': False, 'erro': 'WhatsApp não pode ser vazio'}), 400
        patient.whatsapp = whatsapp
    if 'status' in data:
        if data['status'] not in PATIENT_STATUSES:
            return jsonify({
                'success': False,
                'erro': f'Status inválido. Use: {", ".join(PATIENT_STATUSES)}'
            }), 400
        patient.status = data['status']
    if data.get('ultimaVisita'):
        patient.last_visit = parse_datetime(data['ultimaVisita'], 'ultimaVisita')

    db.session.commit()
    log_audit('patient', 'update', entity_id=patient_id,
              details={k: v for k, v in data.items() if k in ('nome', 'whatsapp', 'status', 'ultimaVisita')})

    return jsonify({'success': True, 'data': patient.to_dict()}), 200


@patient_bp.route('/<int:patient_id>', methods=['DELETE'])
@jwt_required()
def delete_patient(patient_id):
    """Soft-delete: the clinical history stays in the database."""
    patient = _get_patient(patient_id)
    if not patient:
        return _not_found()

    patient.deleted_at = datetime.utcnow()
    db.session.commit()
    log_audit('patient', 'delete', entity_id=patient_id)

    return jsonify({
        'success': True,
        'mensagem': 'Paciente removido com sucesso.'
    }), 200


# ==========================================
# Medical record: anamnesis and clinical notes
# ==========================================

@patient_bp.route('/<int:patient_id>/anamnese', methods=['GET'])
@jwt_required()
def get_anamnesis(patient_id):
    if not _get_patient(patient_id):
        return _not_found()
    anamnesis = Anamnesis.query.filter_by(patient_id=patient_id).first()
    # Empty object while the form has not been filled in yet
    return jsonify({
        'success': True,
        'data': anamnesis.to_dict() if anamnesis else {}
    }), 200


@patient_bp.route('/<int:patient_id>/anamnese', methods=['PUT'])
@jwt_required()
def save_anamnesis(patient_id):
    """Create or update the patient's anamnesis."""
    if not _get_patient(patient_id):
        return _not_found()

    data = request.get_json(silent=True) or {}
    anamnesis = Anamnesis.query.filter_by(patient_id=patient_id).first()
    if anamnesis is None:
        anamnesis = Anamnesis(patient_id=patient_id)
        db.session.add(anamnesis)

    if 'alergias' in data:
        anamnesis.allergies = data['alergias']
    if 'roacutan' in data:
        anamnesis.isotretinoin = to_bool(data['roacutan'])
    if 'gestanteLactante' in data:
        anamnesis.pregnant_or_lactating = to_bool(data['gestanteLactante'])

    db.session.commit()
    log_audit('anamnesis', 'update', entity_id=patient_id)

    return jsonify({'success': True, 'data': anamnesis.to_dict()}), 200


@patient_bp.route('/<int:patient_id>/evolucoes', methods=['GET'])
@jwt_required()
def list_clinical_notes(patient_id):
    if not _get_patient(patient_id):
        return _not_found()
    notes = ClinicalNote.query.filter_by(patient_id=patient_id).order_by(
        ClinicalNote.recorded_at.desc(), ClinicalNote.id.desc()
    ).all()
    return jsonify({
        'success': True,
        'data': [n.to_dict() for n in notes]
    }), 200


@patient_bp.route('/<int:patient_id>/evolucoes', methods=['POST'])
@jwt_required()
def create_clinical_note(patient_id):
    if not _get_patient(patient_id):
        return _not_found()

    data = request.get_json(silent=True) or {}
    practitioner_id = data.get('profissionalId')
    if practitioner_id:
        practitioner_id = to_int(practitioner_id, 'profissionalId')
        if not db.session.get(Practitioner, practitioner_id):
            return jsonify({'success': False, 'erro': 'Profissional não encontrado'}), 400
    else:
        practitioner_id = None

    try:
        note = append_note(db.session, patient_id, data.get('texto'), practitioner_id=practitioner_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return jsonify({'success': True, 'data': note.to_dict()}), 201


@patient_bp.route('/<int:patient_id>/consultas', methods=['GET'])
@jwt_required()
def list_patient_appointments(patient_id):
    """Appointment history for one patient, newest first."""
    if not _get_patient(patient_id):
        return _not_found()
    appointments = Appointment.query.filter(
        Appointment.patient_id == patient_id,
        Appointment.deleted_at.is_(None)
    ).order_by(Appointment.scheduled_at.desc()).all()
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in appointments]
    }), 200
