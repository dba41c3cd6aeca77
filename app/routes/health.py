"""
Status, liveness and readiness endpoints. None of them require a token.
"""
import logging
from datetime import datetime

from flask import Blueprint, jsonify
from sqlalchemy import func, select

from app.extensions import db
from app.models import User

logger = logging.getLogger(__name__)

SERVICE_NAME = 'clinica-backend'

health_bp = Blueprint('health', __name__, url_prefix='/health')
status_bp = Blueprint('status', __name__, url_prefix='/api')


@status_bp.route('/status', methods=['GET'])
def api_status():
    """Ping used by the frontend before showing the login screen."""
    return jsonify({'status': 'API da Clínica rodando perfeitamente! 🚀'}), 200


@health_bp.route('', methods=['GET'])
@health_bp.route('/live', methods=['GET'])
def liveness_check():
    """Process is up; the database is not touched."""
    return jsonify({
        'status': 'alive',
        'service': SERVICE_NAME,
        'timestamp': datetime.utcnow().isoformat(),
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Database reachable and schema migrated: the staff table must be
    queryable, otherwise no one can log in.
    """
    try:
        staff = db.session.execute(select(func.count()).select_from(User)).scalar_one()
    except Exception as e:
        db.session.rollback()
        logger.warning("Readiness check failed: %s", e)
        return jsonify({
            'status': 'not_ready',
            'database': 'unavailable',
            'timestamp': datetime.utcnow().isoformat(),
        }), 503

    return jsonify({
        'status': 'ready',
        'database': 'connected',
        'usuarios': staff,
        'timestamp': datetime.utcnow().isoformat(),
    }), 200
