"""
Clinical notes ("evoluções"): append-only free-text history per patient.
"""
from datetime import datetime
from app.extensions import db
from .base import iso


class ClinicalNote(db.Model):
    __tablename__ = 'clinical_notes'

    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    recorded_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False, index=True)
    practitioner_id = db.Column(db.Integer, db.ForeignKey('practitioners.id'), nullable=True, index=True)

    def __repr__(self):
        return f"<ClinicalNote {self.id} patient={self.patient_id}>"

    def to_dict(self):
        return {
            'id': self.id,
            'texto': self.text,
            'data': iso(self.recorded_at),
            'pacienteId': self.patient_id,
            'profissionalId': self.practitioner_id,
            'profissional': self.practitioner.to_dict() if self.practitioner else None,
        }
