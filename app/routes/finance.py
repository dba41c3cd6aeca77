from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from app.extensions import db
from app.services import list_transactions, post_manual_transaction, summarize
from app.utils.audit import log_audit
from app.utils.parsing import parse_datetime

finance_bp = Blueprint('finance', __name__, url_prefix='/api/financeiro')


@finance_bp.route('', methods=['GET'])
@jwt_required()
def list_finance():
    """
    Postings in a period (defaults to the current month up to today).
    Query params: inicio, fim (ISO dates)
    """
    start = parse_datetime(request.args.get('inicio'), 'inicio')
    end = parse_datetime(request.args.get('fim'), 'fim')

    postings = list_transactions(db.session, start=start, end=end)
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in postings],
        'resumo': summarize(postings),
    }), 200


@finance_bp.route('', methods=['POST'])
@jwt_required()
def create_finance_entry():
    """Manual posting (rent, utilities...). Body: { descricao, valor, tipo, categoria?, data? }"""
    data = request.get_json(silent=True) or {}

    posting = post_manual_transaction(
        db.session,
        description=data.get('descricao'),
        amount=data.get('valor'),
        transaction_type=data.get('tipo'),
        category=data.get('categoria'),
        occurred_at=parse_datetime(data.get('data'), 'data'),
    )
    log_audit('financial_transaction', 'create', entity_id=posting.id,
              details={'tipo': posting.type, 'valor': posting.amount})

    return jsonify({'success': True, 'data': posting.to_dict()}), 201
