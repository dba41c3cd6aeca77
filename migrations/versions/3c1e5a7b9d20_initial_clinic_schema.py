"""Initial clinic schema

Revision ID: 3c1e5a7b9d20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1e5a7b9d20'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('whatsapp', sa.String(length=30), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('last_visit', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_patients_name', 'patients', ['name'])
    op.create_index('ix_patients_deleted_at', 'patients', ['deleted_at'])

    op.create_table(
        'anamneses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('patient_id', sa.Integer(), nullable=False),
        sa.Column('allergies', sa.Text(), nullable=True),
        sa.Column('isotretinoin', sa.Boolean(), nullable=True),
        sa.Column('pregnant_or_lactating', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_anamneses_patient_id', 'anamneses', ['patient_id'], unique=True)

    op.create_table(
        'practitioners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('specialty', sa.String(length=100), nullable=True),
        sa.Column('council', sa.String(length=50), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('commission', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_practitioners_name', 'practitioners', ['name'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=True),
        sa.Column('attends_patients', sa.Boolean(), nullable=False),
        sa.Column('specialty', sa.String(length=100), nullable=True),
        sa.Column('council', sa.String(length=50), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('commission', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'procedures',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_procedures_name', 'procedures', ['name'])
    op.create_index('ix_procedures_status', 'procedures', ['status'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('unit', sa.String(length=30), nullable=True),
        sa.Column('minimum', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('average_cost', sa.Numeric(precision=12, scale=4), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('patient_id', sa.Integer(), nullable=False),
        sa.Column('practitioner_id', sa.Integer(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
        sa.ForeignKeyConstraint(['practitioner_id'], ['practitioners.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_appointments_scheduled_at', 'appointments', ['scheduled_at'])
    op.create_index('ix_appointments_patient_id', 'appointments', ['patient_id'])
    op.create_index('ix_appointments_practitioner_id', 'appointments', ['practitioner_id'])
    op.create_index('ix_appointments_deleted_at', 'appointments', ['deleted_at'])

    op.create_table(
        'appointment_procedures',
        sa.Column('appointment_id', sa.Integer(), nullable=False),
        sa.Column('procedure_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id']),
        sa.ForeignKeyConstraint(['procedure_id'], ['procedures.id']),
        sa.PrimaryKeyConstraint('appointment_id', 'procedure_id')
    )

    op.create_table(
        'clinical_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('patient_id', sa.Integer(), nullable=False),
        sa.Column('practitioner_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
        sa.ForeignKeyConstraint(['practitioner_id'], ['practitioners.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clinical_notes_recorded_at', 'clinical_notes', ['recorded_at'])
    op.create_index('ix_clinical_notes_patient_id', 'clinical_notes', ['patient_id'])
    op.create_index('ix_clinical_notes_practitioner_id', 'clinical_notes', ['practitioner_id'])

    op.create_table(
        'movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_value', sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column('supplier', sa.String(length=150), nullable=True),
        sa.Column('batch', sa.String(length=60), nullable=True),
        sa.Column('expiry', sa.Date(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('appointment_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_movements_type', 'movements', ['type'])
    op.create_index('ix_movements_recorded_at', 'movements', ['recorded_at'])
    op.create_index('ix_movements_product_id', 'movements', ['product_id'])
    op.create_index('ix_movements_appointment_id', 'movements', ['appointment_id'])

    op.create_table(
        'financial_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('category', sa.String(length=60), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('appointment_id', sa.Integer(), nullable=True),
        sa.Column('movement_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id']),
        sa.ForeignKeyConstraint(['movement_id'], ['movements.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_financial_transactions_type', 'financial_transactions', ['type'])
    op.create_index('ix_financial_transactions_category', 'financial_transactions', ['category'])
    op.create_index('ix_financial_transactions_occurred_at', 'financial_transactions', ['occurred_at'])
    op.create_index('ix_financial_transactions_appointment_id', 'financial_transactions', ['appointment_id'])
    op.create_index('ix_financial_transactions_movement_id', 'financial_transactions', ['movement_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])


def downgrade():
    # Reverse dependency order
    op.drop_table('audit_logs')
    op.drop_table('financial_transactions')
    op.drop_table('movements')
    op.drop_table('clinical_notes')
    op.drop_table('appointment_procedures')
    op.drop_table('appointments')
    op.drop_table('products')
    op.drop_table('procedures')
    op.drop_table('users')
    op.drop_table('practitioners')
    op.drop_table('anamneses')
    op.drop_table('patients')
