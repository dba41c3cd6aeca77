from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
import logging

from app.errors import ClinicError
from app.extensions import db
from app.models import Product
from app.services import create_product, list_history, register_movement, replay_balance
from app.utils.audit import log_audit
from app.utils.parsing import parse_date, to_bool

logger = logging.getLogger(__name__)

inventory_bp = Blueprint('inventory', __name__, url_prefix='/api/estoque')


@inventory_bp.route('/produtos', methods=['GET'])
@jwt_required()
def list_products():
    """Product catalog. ?abaixoMinimo=true lists only products below their minimum."""
    products = Product.query.order_by(Product.name.asc()).all()
    if to_bool(request.args.get('abaixoMinimo')):
        products = [p for p in products if p.below_minimum]
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in products]
    }), 200


@inventory_bp.route('/produtos', methods=['POST'])
@jwt_required()
def create_product_route():
    data = request.get_json(silent=True) or {}
    product = create_product(
        db.session,
        name=data.get('nome'),
        category=data.get('categoria'),
        unit=data.get('unidade'),
        minimum=data.get('min'),
        average_cost=data.get('precoMedio'),
    )
    log_audit('product', 'create', entity_id=product.id)
    return jsonify({'success': True, 'data': product.to_dict()}), 201


@inventory_bp.route('/produtos/<int:product_id>/saldo', methods=['GET'])
@jwt_required()
def product_balance(product_id):
    """Stored balance next to the balance rebuilt from the movement log."""
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({'success': False, 'erro': 'Produto não encontrado.'}), 404

    replayed = replay_balance(db.session, product_id)
    return jsonify({
        'success': True,
        'data': {
            'produtoId': product.id,
            'qtd': product.quantity,
            'qtdMovimentacoes': replayed,
            'consistente': replayed == product.quantity,
        }
    }), 200


@inventory_bp.route('/movimentacao', methods=['POST'])
@jwt_required()
def create_movement():
    """
    Stock entry or exit.
    Body: { produtoId, qtd, tipo: ENTRADA|SAIDA, valorUnitario?, fornecedor?, lote?, validade? }
    """
    data = request.get_json(silent=True) or {}

    try:
        movement = register_movement(
            db.session,
            product_id=data.get('produtoId'),
            movement_type=data.get('tipo'),
            quantity=data.get('qtd'),
            unit_value=data.get('valorUnitario') or 0,
            supplier=data.get('fornecedor') or None,
            batch=data.get('lote') or None,
            expiry=parse_date(data.get('validade'), 'validade'),
        )
    except ClinicError as e:
        # Insufficient stock and unknown product are client errors here
        return jsonify({'success': False, 'erro': e.message}), 400
    except Exception as e:
        db.session.rollback()
        logger.error("Error registering stock movement: %s", e, exc_info=True)
        error_msg = 'Erro ao processar movimentação de estoque.' if not current_app.debug else str(e)
        return jsonify({'success': False, 'erro': error_msg}), 500

    log_audit('movement', 'create', entity_id=movement.id,
              details={'tipo': movement.type, 'qtd': movement.quantity, 'produto_id': movement.product_id})

    return jsonify({'success': True, 'data': movement.to_dict()}), 201


@inventory_bp.route('/historico', methods=['GET'])
@jwt_required()
def movement_history():
    """Latest movements with their product."""
    movements = list_history(db.session, limit=current_app.config.get('HISTORY_LIMIT', 100))
    return jsonify({
        'success': True,
        'data': [m.to_dict(include_product=True) for m in movements]
    }), 200
