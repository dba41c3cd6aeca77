from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from app.extensions import db
from app.models import Practitioner
from app.utils.audit import log_audit
from app.utils.parsing import to_int, to_text

practitioner_bp = Blueprint('practitioner', __name__, url_prefix='/api/profissionais')

UPDATABLE_FIELDS = {
    'nome': 'name',
    'especialidade': 'specialty',
    'conselho': 'council',
    'telefone': 'phone',
    'status': 'status',
}


@practitioner_bp.route('', methods=['GET'])
@jwt_required()
def list_practitioners():
    """List practitioners ordered by name. ?status=ativo filters."""
    query = Practitioner.query
    status = request.args.get('status', type=str)
    if status:
        query = query.filter(Practitioner.status == status)
    practitioners = query.order_by(Practitioner.name.asc()).all()
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in practitioners]
    }), 200


@practitioner_bp.route('', methods=['POST'])
@jwt_required()
def create_practitioner():
    data = request.get_json(silent=True) or {}

    name = to_text(data.get('nome'), 'nome')
    if not name:
        return jsonify({'success': False, 'erro': 'Nome é obrigatório'}), 400

    practitioner = Practitioner(
        name=name,
        specialty=data.get('especialidade'),
        council=data.get('conselho'),
        phone=data.get('telefone'),
        commission=to_int(data.get('comissao') or 0, 'comissao'),
        status=data.get('status') or 'ativo',
    )
    db.session.add(practitioner)
    db.session.commit()
    log_audit('practitioner', 'create', entity_id=practitioner.id)

    return jsonify({'success': True, 'data': practitioner.to_dict()}), 201


@practitioner_bp.route('/<int:practitioner_id>', methods=['GET'])
@jwt_required()
def get_practitioner(practitioner_id):
    practitioner = db.session.get(Practitioner, practitioner_id)
    if not practitioner:
        return jsonify({'success': False, 'erro': 'Profissional não encontrado'}), 404
    return jsonify({'success': True, 'data': practitioner.to_dict()}), 200


@practitioner_bp.route('/<int:practitioner_id>', methods=['PUT'])
@jwt_required()
def update_practitioner(practitioner_id):
    practitioner = db.session.get(Practitioner, practitioner_id)
    if not practitioner:
        return jsonify({'success': False, 'erro': 'Profissional não encontrado'}), 404

    data = request.get_json(silent=True) or {}
    if 'nome' in data:
        data['nome'] = to_text(data['nome'], 'nome')
        if not data['nome']:
            return jsonify({'success': False, 'erro': 'Nome não pode ser vazio'}), 400

    for field, attr in UPDATABLE_FIELDS.items():
        if field in data:
            setattr(practitioner, attr, data[field])
    if 'comissao' in data:
        practitioner.commission = to_int(data['comissao'] or 0, 'comissao')

    db.session.commit()
    log_audit('practitioner', 'update', entity_id=practitioner_id)

    return jsonify({'success': True, 'data': practitioner.to_dict()}), 200


@practitioner_bp.route('/<int:practitioner_id>', methods=['DELETE'])
@jwt_required()
def deactivate_practitioner(practitioner_id):
    """Practitioners are referenced by appointments and notes, so they are deactivated."""
    practitioner = db.session.get(Practitioner, practitioner_id)
    if not practitioner:
        return jsonify({'success': False, 'erro': 'Profissional não encontrado'}), 404

    practitioner.status = 'inativo'
    db.session.commit()
    log_audit('practitioner', 'delete', entity_id=practitioner_id)

    return jsonify({
        'success': True,
        'mensagem': 'Profissional inativado com sucesso.'
    }), 200
