from decimal import Decimal
from app.extensions import db
from .base import TimestampMixin, money


class Product(db.Model, TimestampMixin):
    """
    Inventory item.

    `quantity` and `average_cost` are a denormalized running balance of the
    movement log; they only change together with a new Movement row.
    """
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    category = db.Column(db.String(100))
    unit = db.Column(db.String(30), default='unidade')
    minimum = db.Column(db.Integer, default=0, nullable=False)
    quantity = db.Column(db.Integer, default=0, nullable=False)
    average_cost = db.Column(db.Numeric(12, 4), default=Decimal('0'), nullable=False)

    movements = db.relationship('Movement', backref='product', lazy='dynamic')

    @property
    def below_minimum(self):
        return (self.quantity or 0) < (self.minimum or 0)

    def __repr__(self):
        return f"<Product {self.name} qtd={self.quantity}>"

    def to_dict(self):
        return {
            'id': self.id,
            'nome': self.name,
            'categoria': self.category,
            'unidade': self.unit,
            'min': self.minimum,
            'qtd': self.quantity,
            'precoMedio': money(self.average_cost),
            'abaixoMinimo': self.below_minimum,
        }
