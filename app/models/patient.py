from app.extensions import db
from .base import TimestampMixin, iso


class Patient(db.Model, TimestampMixin):
    __tablename__ = 'patients'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    whatsapp = db.Column(db.String(30), nullable=False)
    status = db.Column(db.String(20), default='ativo', nullable=False)  # ativo, inativo
    last_visit = db.Column(db.DateTime, nullable=True)

    # Soft delete (clinical records are never hard-deleted)
    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    # Relationships
    appointments = db.relationship('Appointment', backref='patient', lazy='dynamic')
    clinical_notes = db.relationship('ClinicalNote', backref='patient', lazy='dynamic')
    anamnesis = db.relationship('Anamnesis', backref='patient', uselist=False, lazy=True)

    def __repr__(self):
        return f"<Patient {self.name} ({self.id})>"

    def to_dict(self):
        return {
            'id': self.id,
            'nome': self.name,
            'whatsapp': self.whatsapp,
            'status': self.status,
            'ultimaVisita': iso(self.last_visit),
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at),
        }


class Anamnesis(db.Model, TimestampMixin):
    """Intake questionnaire, one per patient."""
    __tablename__ = 'anamneses'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False, unique=True, index=True)
    allergies = db.Column(db.Text)
    isotretinoin = db.Column(db.Boolean, default=False)  # "roacutan"
    pregnant_or_lactating = db.Column(db.Boolean, default=False)

    def to_dict(self):
        return {
            'id': self.id,
            'pacienteId': self.patient_id,
            'alergias': self.allergies,
            'roacutan': self.isotretinoin,
            'gestanteLactante': self.pregnant_or_lactating,
            'updatedAt': iso(self.updated_at),
        }
