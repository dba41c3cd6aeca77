from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from decimal import Decimal

from app.extensions import db
from app.models import Procedure
from app.utils.audit import log_audit
from app.utils.parsing import to_bool, to_decimal, to_text

procedure_bp = Blueprint('procedure', __name__, url_prefix='/api/procedimentos')


def _parse_price(value):
    price = to_decimal(value, 'valor')
    if price < 0:
        return None
    return price.quantize(Decimal('0.01'))


@procedure_bp.route('', methods=['GET'])
@jwt_required()
def list_procedures():
    """Active procedures only, unless ?todos=true"""
    query = Procedure.query
    if not to_bool(request.args.get('todos')):
        query = query.filter(Procedure.status == Procedure.ACTIVE)
    procedures = query.order_by(Procedure.name.asc()).all()
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in procedures]
    }), 200


@procedure_bp.route('', methods=['POST'])
@jwt_required()
def create_procedure():
    data = request.get_json(silent=True) or {}

    name = to_text(data.get('nome'), 'nome')
    if not name:
        return jsonify({'success': False, 'erro': 'Nome é obrigatório'}), 400
    price = _parse_price(data.get('valor'))
    if price is None:
        return jsonify({'success': False, 'erro': 'Valor não pode ser negativo'}), 400

    procedure = Procedure(name=name, price=price, status=Procedure.ACTIVE)
    db.session.add(procedure)
    db.session.commit()
    log_audit('procedure', 'create', entity_id=procedure.id,
              details={'valor': price})

    return jsonify({'success': True, 'data': procedure.to_dict()}), 201


@procedure_bp.route('/<int:procedure_id>', methods=['PUT'])
@jwt_required()
def update_procedure(procedure_id):
    """Price changes never touch revenue already posted."""
    procedure = db.session.get(Procedure, procedure_id)
    if not procedure:
        return jsonify({'success': False, 'erro': 'Procedimento não encontrado'}), 404

    data = request.get_json(silent=True) or {}
    if 'nome' in data:
        name = to_text(data['nome'], 'nome')
        if not name:
            return jsonify({'success': False, 'erro': 'Nome não pode ser vazio'}), 400
        procedure.name = name
    if 'valor' in data:
        price = _parse_price(data['valor'])
        if price is None:
            return jsonify({'success': False, 'erro': 'Valor não pode ser negativo'}), 400
        procedure.price = price
    if 'status' in data:
        if data['status'] not in (Procedure.ACTIVE, Procedure.INACTIVE):
            return jsonify({'success': False, 'erro': 'Status inválido. Use: ativo, inativo'}), 400
        procedure.status = data['status']

    db.session.commit()
    log_audit('procedure', 'update', entity_id=procedure_id)

    return jsonify({'success': True, 'data': procedure.to_dict()}), 200


@procedure_bp.route('/<int:procedure_id>', methods=['DELETE'])
@jwt_required()
def deactivate_procedure(procedure_id):
    """Soft delete: the catalog entry stays for historical appointments."""
    procedure = db.session.get(Procedure, procedure_id)
    if not procedure:
        return jsonify({'success': False, 'erro': 'Procedimento não encontrado'}), 404

    procedure.status = Procedure.INACTIVE
    db.session.commit()
    log_audit('procedure', 'delete', entity_id=procedure_id)

    return jsonify({'success': True, 'mensagem': 'Procedimento inativado com sucesso'}), 200
