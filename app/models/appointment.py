from app.extensions import db
from .base import TimestampMixin, iso


# Procedures performed in (or planned for) an appointment
appointment_procedures = db.Table(
    'appointment_procedures',
    db.Column('appointment_id', db.Integer, db.ForeignKey('appointments.id'), primary_key=True),
    db.Column('procedure_id', db.Integer, db.ForeignKey('procedures.id'), primary_key=True),
)


class Appointment(db.Model, TimestampMixin):
    __tablename__ = 'appointments'

    # Status values
    SCHEDULED = 'Agendado'
    CONCLUDED = 'Concluído'
    CANCELLED = 'Cancelado'
    STATUSES = (SCHEDULED, CONCLUDED, CANCELLED)

    id = db.Column(db.Integer, primary_key=True)
    scheduled_at = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(db.String(30), default=SCHEDULED, nullable=False)

    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False, index=True)
    practitioner_id = db.Column(db.Integer, db.ForeignKey('practitioners.id'), nullable=True, index=True)

    # Soft delete (no hard deletion of medical data)
    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    procedures = db.relationship(
        'Procedure',
        secondary=appointment_procedures,
        lazy='selectin',
        backref=db.backref('appointments', lazy='dynamic'),
    )

    def __repr__(self):
        return f"<Appointment {self.id} patient={self.patient_id} at {self.scheduled_at} ({self.status})>"

    def to_dict(self, include_relations=True):
        data = {
            'id': self.id,
            'dataHorario': iso(self.scheduled_at),
            'status': self.status,
            'pacienteId': self.patient_id,
            'profissionalId': self.practitioner_id,
            'procedimentos': [p.to_dict() for p in self.procedures],
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at),
        }
        if include_relations:
            data['paciente'] = self.patient.to_dict() if self.patient else None
            data['profissional'] = self.practitioner.to_dict() if self.practitioner else None
        return data
