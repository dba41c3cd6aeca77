from app.extensions import db
from .base import TimestampMixin


class Practitioner(db.Model, TimestampMixin):
    __tablename__ = 'practitioners'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    specialty = db.Column(db.String(100))
    council = db.Column(db.String(50))  # e.g. CRM 12345
    phone = db.Column(db.String(30))
    commission = db.Column(db.Integer, default=0)  # percent
    status = db.Column(db.String(20), default='ativo', nullable=False)  # ativo, inativo

    appointments = db.relationship('Appointment', backref='practitioner', lazy='dynamic')
    clinical_notes = db.relationship('ClinicalNote', backref='practitioner', lazy='dynamic')

    def __repr__(self):
        return f"<Practitioner {self.name}>"

    def to_dict(self):
        return {
            'id': self.id,
            'nome': self.name,
            'especialidade': self.specialty,
            'conselho': self.council,
            'telefone': self.phone,
            'comissao': self.commission,
            'status': self.status,
        }
