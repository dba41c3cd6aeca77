"""
Staff (team) management.
Everything except changing one's own password requires the "equipe" permission.
"""
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from app.extensions import db
from app.models import User
from app.utils.audit import log_audit
from app.utils.decorators import require_permission, get_current_user, current_user_id
from app.utils.parsing import to_bool, to_int, to_text

user_bp = Blueprint('user', __name__, url_prefix='/api/usuarios')

MIN_PASSWORD_LENGTH = 4

PROFILE_FIELDS = {
    'nome': 'name',
    'cargo': 'title',
    'especialidade': 'specialty',
    'conselho': 'council',
    'telefone': 'phone',
}


def _validate_permissions(value):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        return None
    return value


@user_bp.route('', methods=['GET'])
@jwt_required()
@require_permission('equipe')
def list_users():
    users = User.query.order_by(User.name.asc()).all()
    return jsonify({
        'success': True,
        'data': [u.to_dict() for u in users]
    }), 200


@user_bp.route('', methods=['POST'])
@jwt_required()
@require_permission('equipe')
def create_user():
    data = request.get_json(silent=True) or {}

    name = to_text(data.get('nome'), 'nome')
    username = to_text(data.get('username'), 'username')
    password = to_text(data.get('senha'), 'senha')
    if not name or not username or not password:
        return jsonify({
            'success': False,
            'erro': 'Nome, usuário e senha são obrigatórios'
        }), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'success': False, 'erro': 'Senha muito curta.'}), 400

    permissions = _validate_permissions(data.get('permissoes'))
    if permissions is None:
        return jsonify({'success': False, 'erro': 'Permissões devem ser uma lista de textos'}), 400

    if User.query.filter_by(username=username).first():
        return jsonify({
            'success': False,
            'erro': 'Nome de usuário (login) já em uso.'
        }), 400

    user = User(
        name=name,
        username=username,
        permissions=permissions,
        title=data.get('cargo') or 'Indefinido',
        attends_patients=to_bool(data.get('atendePacientes')),
        specialty=data.get('especialidade') or None,
        council=data.get('conselho') or None,
        phone=data.get('telefone') or None,
        commission=to_int(data.get('comissao') or 0, 'comissao'),
        status='ativo',
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    log_audit('user', 'create', entity_id=user.id,
              details={'username': username, 'permissoes': permissions})

    return jsonify({'success': True, 'data': user.to_dict()}), 201


@user_bp.route('/<int:user_id>', methods=['PUT'])
@jwt_required()
@require_permission('equipe')
def update_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({'success': False, 'erro': 'Usuário não encontrado'}), 404

    data = request.get_json(silent=True) or {}

    if 'username' in data:
        username = to_text(data['username'], 'username')
        if not username:
            return jsonify({'success': False, 'erro': 'Usuário não pode ser vazio'}), 400
        clash = User.query.filter(User.username == username, User.id != user_id).first()
        if clash:
            return jsonify({'success': False, 'erro': 'Nome de usuário (login) já em uso.'}), 400
        user.username = username

    if 'permissoes' in data:
        permissions = _validate_permissions(data['permissoes'])
        if permissions is None:
            return jsonify({'success': False, 'erro': 'Permissões devem ser uma lista de textos'}), 400
        user.permissions = permissions

    if 'status' in data:
        if data['status'] not in ('ativo', 'inativo'):
            return jsonify({'success': False, 'erro': 'Status inválido. Use: ativo, inativo'}), 400
        user.status = data['status']

    for field, attr in PROFILE_FIELDS.items():
        if field in data:
            setattr(user, attr, data[field])
    if 'atendePacientes' in data:
        user.attends_patients = to_bool(data['atendePacientes'])
    if 'comissao' in data:
        user.commission = to_int(data['comissao'] or 0, 'comissao')

    # Password only changes when a non-blank value is sent
    password = to_text(data.get('senha'), 'senha')
    if password:
        if len(password) < MIN_PASSWORD_LENGTH:
            return jsonify({'success': False, 'erro': 'Senha muito curta.'}), 400
        user.set_password(password)

    db.session.commit()
    log_audit('user', 'update', entity_id=user_id)

    return jsonify({'success': True, 'data': user.to_dict()}), 200


@user_bp.route('/<int:user_id>', methods=['DELETE'])
@jwt_required()
@require_permission('equipe')
def deactivate_user(user_id):
    """Users own audit entries, so they are deactivated rather than removed."""
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({'success': False, 'erro': 'Usuário não encontrado'}), 404
    if user.id == current_user_id():
        return jsonify({'success': False, 'erro': 'Você não pode inativar o próprio usuário.'}), 400

    user.status = 'inativo'
    db.session.commit()
    log_audit('user', 'delete', entity_id=user_id)

    return jsonify({'success': True, 'mensagem': 'Membro da equipe inativado'}), 200


@user_bp.route('/perfil/senha', methods=['PUT'])
@jwt_required()
def change_own_password():
    """Any authenticated user may change their own password."""
    data = request.get_json(silent=True) or {}
    password = to_text(data.get('senha'), 'senha')

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'success': False, 'erro': 'Senha muito curta.'}), 400

    user = get_current_user()
    if not user:
        return jsonify({'success': False, 'erro': 'Usuário não encontrado'}), 404

    user.set_password(password)
    db.session.commit()
    log_audit('user', 'password_change', user_id=user.id, entity_id=user.id)

    return jsonify({'success': True, 'mensagem': 'Senha atualizada com sucesso!'}), 200
