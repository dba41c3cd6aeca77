#!/usr/bin/env python3
"""
Create the database tables (if missing) and the default administrator.
Run with: python init_admin.py
"""
import os

from app import create_app
from app.extensions import db
from app.models import User

ALL_PERMISSIONS = [
    'dashboard', 'equipe', 'agenda', 'pacientes',
    'financeiro', 'estoque', 'procedimentos', 'usuarios',
]

DEFAULT_ADMIN = {
    'username': 'admin',
    'password': os.getenv('ADMIN_PASSWORD', 'admin123'),
    'name': 'Administrador',
    'title': 'Administrador',
}


def create_admin(app=None):
    """Create the admin user unless it already exists. Returns True when created."""
    app = app or create_app()

    with app.app_context():
        db.create_all()

        existing = User.query.filter_by(username=DEFAULT_ADMIN['username']).first()
        if existing:
            print(f"  - Admin '{DEFAULT_ADMIN['username']}' already exists (skipping)")
            return False

        admin = User(
            name=DEFAULT_ADMIN['name'],
            username=DEFAULT_ADMIN['username'],
            title=DEFAULT_ADMIN['title'],
            attends_patients=False,
            permissions=list(ALL_PERMISSIONS),
            status='ativo',
        )
        admin.set_password(DEFAULT_ADMIN['password'])
        db.session.add(admin)
        db.session.commit()

        print(f"  ✓ Created: {admin.username} - Password: {DEFAULT_ADMIN['password']}")
        print("\n⚠️  IMPORTANT: Change the password after first login!")
        return True


if __name__ == '__main__':
    create_admin()
