from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from .extensions import db, migrate, bcrypt, jwt
from .errors import ClinicError
import logging
import os

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Create Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    from app.config import config, get_config
    config_class = config.get(config_name, config['default']) if config_name else get_config()
    if hasattr(config_class, 'validate'):
        config_class.validate()
    app.config.from_object(config_class)

    # Ensure production mode if FLASK_ENV is production
    if os.getenv('FLASK_ENV') == 'production' and not config_name:
        app.config['DEBUG'] = False
        app.config['TESTING'] = False

    logging.getLogger('app').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions (the database handle lives for the whole process;
    # sessions are scoped to a request and removed at teardown)
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    jwt.init_app(app)

    # Initialize CORS
    from app.utils.cors import init_cors
    init_cors(app)

    # Request logging and security headers
    from app.middleware import setup_middleware
    setup_middleware(app)

    # Domain errors raised by services
    @app.errorhandler(ClinicError)
    def handle_clinic_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    # Global error handler
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'erro': 'Endpoint não encontrado.'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'success': False,
            'erro': 'Método não permitido.'
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal Server Error: {error}", exc_info=True)
        return jsonify({
            'success': False,
            'erro': 'Erro interno no servidor.'
        }), 500

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify({'success': False, 'erro': e.description}), e.code
        db.session.rollback()
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'erro': 'Erro interno no servidor.'
        }), 500

    # JWT failures answer in the API's error shape
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({
            'success': False,
            'erro': 'Acesso negado. Token não fornecido.'
        }), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({
            'success': False,
            'erro': 'Token inválido ou mal formatado.'
        }), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({
            'success': False,
            'erro': 'Token inválido ou expirado.'
        }), 401

    # Setup file logging
    if not app.debug and not app.testing:
        from logging.handlers import RotatingFileHandler

        log_dir = os.path.dirname(app.config['LOG_FILE']) or '.'
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = RotatingFileHandler(
            app.config['LOG_FILE'],
            maxBytes=10240000,
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger('app').addHandler(file_handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info('Application startup')

    # Import models to register them with SQLAlchemy
    with app.app_context():
        from . import models  # noqa: F401

        # Register blueprints
        from .routes import (
            auth_bp, patient_bp, practitioner_bp, user_bp, appointment_bp,
            procedure_bp, inventory_bp, finance_bp, health_bp, status_bp,
        )
        app.register_blueprint(health_bp)  # Register health check first
        app.register_blueprint(status_bp)
        app.register_blueprint(auth_bp)
        app.register_blueprint(patient_bp)
        app.register_blueprint(practitioner_bp)
        app.register_blueprint(user_bp)
        app.register_blueprint(appointment_bp)
        app.register_blueprint(procedure_bp)
        app.register_blueprint(inventory_bp)
        app.register_blueprint(finance_bp)

    return app
