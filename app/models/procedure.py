from app.extensions import db
from .base import TimestampMixin, money


class Procedure(db.Model, TimestampMixin):
    """Procedure catalog entry. Deleting deactivates (status = inativo)."""
    __tablename__ = 'procedures'

    ACTIVE = 'ativo'
    INACTIVE = 'inativo'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(20), default=ACTIVE, nullable=False, index=True)

    def __repr__(self):
        return f"<Procedure {self.name} ({self.price})>"

    def to_dict(self):
        return {
            'id': self.id,
            'nome': self.name,
            'valor': money(self.price),
            'status': self.status,
        }
