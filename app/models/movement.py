"""
Inventory movement log. Rows are appended, never updated or deleted.
"""
from datetime import datetime
from app.extensions import db
from .base import iso, money


class Movement(db.Model):
    __tablename__ = 'movements'

    ENTRY = 'ENTRADA'
    EXIT = 'SAIDA'
    TYPES = (ENTRY, EXIT)

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(10), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_value = db.Column(db.Numeric(12, 4), nullable=False, default=0)
    supplier = db.Column(db.String(150))
    batch = db.Column(db.String(60))
    expiry = db.Column(db.Date)
    recorded_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False, index=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True, index=True)

    appointment = db.relationship('Appointment', backref=db.backref('movements', lazy='dynamic'))

    @property
    def signed_quantity(self):
        return self.quantity if self.type == self.ENTRY else -self.quantity

    def __repr__(self):
        return f"<Movement {self.type} {self.quantity} product={self.product_id}>"

    def to_dict(self, include_product=False):
        data = {
            'id': self.id,
            'tipo': self.type,
            'qtd': self.quantity,
            'valorUnitario': money(self.unit_value),
            'fornecedor': self.supplier,
            'lote': self.batch,
            'validade': iso(self.expiry),
            'data': iso(self.recorded_at),
            'produtoId': self.product_id,
            'agendamentoId': self.appointment_id,
        }
        if include_product:
            data['produto'] = self.product.to_dict() if self.product else None
        return data
