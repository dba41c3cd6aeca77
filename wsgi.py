"""
WSGI entry point for production deployment
Run with: gunicorn -w 4 -b 0.0.0.0:3333 wsgi:application
"""
from app import create_app

application = create_app()
