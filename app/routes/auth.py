from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, jwt_required
from datetime import datetime

from app.models import User
from app.extensions import db
from app.utils.decorators import get_current_user

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login endpoint - authenticates a staff user and returns a JWT"""
    data = request.get_json(silent=True)

    if not data:
        return jsonify({
            'success': False,
            'erro': 'O corpo da requisição deve ser JSON'
        }), 400

    username = data.get('username')
    password = data.get('senha')

    if not username or not password:
        return jsonify({
            'success': False,
            'erro': 'Usuário e senha são obrigatórios'
        }), 400

    user = User.query.filter_by(username=username).first()

    if not user or not user.is_active:
        return jsonify({
            'success': False,
            'erro': 'Credenciais inválidas ou usuário inativo.'
        }), 401

    if not user.check_password(password):
        return jsonify({
            'success': False,
            'erro': 'Credenciais inválidas.'
        }), 401

    user.last_login = datetime.utcnow()
    db.session.commit()

    # Identity must be a string for the JWT "sub" claim
    token = create_access_token(
        identity=str(user.id),
        additional_claims={
            'username': user.username,
            'permissoes': user.permissions or [],
        },
    )

    return jsonify({
        'success': True,
        'token': token,
        'token_type': 'bearer',
        'usuario': {
            'id': user.id,
            'nome': user.name,
            'username': user.username,
            'permissoes': user.permissions or [],
        }
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_me():
    """Current logged-in user"""
    user = get_current_user()
    if not user:
        return jsonify({'success': False, 'erro': 'Usuário não encontrado'}), 404
    return jsonify({'success': True, 'data': user.to_dict()}), 200
