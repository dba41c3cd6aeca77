"""
Financial ledger entries (revenues and expenses). Append-only.
"""
from datetime import datetime
from app.extensions import db
from .base import iso, money


class FinancialTransaction(db.Model):
    __tablename__ = 'financial_transactions'

    REVENUE = 'RECEITA'
    EXPENSE = 'DESPESA'
    TYPES = (REVENUE, EXPENSE)

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(10), nullable=False, index=True)
    category = db.Column(db.String(60), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    occurred_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True, index=True)
    movement_id = db.Column(db.Integer, db.ForeignKey('movements.id'), nullable=True, index=True)

    appointment = db.relationship('Appointment', backref=db.backref('transactions', lazy='dynamic'))
    movement = db.relationship('Movement', backref=db.backref('transactions', lazy='dynamic'))

    def __repr__(self):
        return f"<FinancialTransaction {self.type} {self.amount} {self.description!r}>"

    def to_dict(self):
        return {
            'id': self.id,
            'tipo': self.type,
            'categoria': self.category,
            'descricao': self.description,
            'valor': money(self.amount),
            'data': iso(self.occurred_at),
            'agendamentoId': self.appointment_id,
            'movimentacaoId': self.movement_id,
        }
