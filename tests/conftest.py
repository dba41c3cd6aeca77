"""
Pytest fixtures for the clinic backend test suite.

Provides:
- A Flask app bound to an in-memory SQLite database (tables created per test)
- Authenticated request headers
- Catalog rows (patient, practitioner, procedures, products, appointment)
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from app.extensions import db
from app.models import Appointment, Movement, Patient, Practitioner, Procedure, Product, User
from app.services import record_movement


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return db.session


def _make_user(session, username, permissions, status='ativo', password='segredo123'):
    user = User(name=username.title(), username=username, permissions=permissions, status=status)
    user.set_password(password)
    session.add(user)
    session.commit()
    return user


def _headers_for(user):
    token = create_access_token(
        identity=str(user.id),
        additional_claims={'username': user.username, 'permissoes': user.permissions},
    )
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_user(session):
    return _make_user(session, 'admin', ['equipe', 'estoque', 'financeiro', 'agenda'])


@pytest.fixture
def auth_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture
def reception_headers(session):
    """A logged-in user without the team-management permission."""
    user = _make_user(session, 'recepcao', ['agenda'])
    return _headers_for(user)


@pytest.fixture
def patient(session):
    patient = Patient(name='Maria Silva', whatsapp='11999990000')
    session.add(patient)
    session.commit()
    return patient


@pytest.fixture
def practitioner(session):
    practitioner = Practitioner(name='Dra. Ana', specialty='Dermatologia')
    session.add(practitioner)
    session.commit()
    return practitioner


@pytest.fixture
def appointment(session, patient, practitioner):
    appointment = Appointment(
        scheduled_at=datetime.utcnow() + timedelta(hours=1),
        patient_id=patient.id,
        practitioner_id=practitioner.id,
    )
    session.add(appointment)
    session.commit()
    return appointment


@pytest.fixture
def procedures(session):
    botox = Procedure(name='Botox', price=Decimal('800.00'))
    peeling = Procedure(name='Peeling', price=Decimal('250.50'))
    session.add_all([botox, peeling])
    session.commit()
    return botox, peeling


@pytest.fixture
def gauze(session):
    product = Product(name='Gaze', unit='pacote', minimum=5)
    session.add(product)
    session.commit()
    return product


@pytest.fixture
def syringe(session):
    product = Product(name='Seringa', unit='unidade', minimum=2)
    session.add(product)
    session.commit()
    return product


@pytest.fixture
def stock(session):
    """Put units on hand through the ledger, without finance side effects."""
    def _stock(product, quantity, unit_value='0'):
        record_movement(session, product.id, Movement.ENTRY, quantity, unit_value=unit_value)
        session.commit()
        return session.get(Product, product.id)
    return _stock
