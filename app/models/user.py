from app.extensions import db, bcrypt
from .base import TimestampMixin, iso


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Screens/areas the user may access, e.g. ["agenda", "estoque", "equipe"]
    permissions = db.Column(db.JSON, nullable=False, default=list)

    # Staff profile
    title = db.Column(db.String(100), default='Indefinido')  # "cargo"
    attends_patients = db.Column(db.Boolean, default=False, nullable=False)
    specialty = db.Column(db.String(100))
    council = db.Column(db.String(50))
    phone = db.Column(db.String(30))
    commission = db.Column(db.Integer, default=0)

    status = db.Column(db.String(20), default='ativo', nullable=False)  # ativo, inativo
    last_login = db.Column(db.DateTime, nullable=True)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return self.status == 'ativo'

    def has_permission(self, permission):
        return permission in (self.permissions or [])

    def __repr__(self):
        return f"<User {self.username} ({self.name})>"

    def to_dict(self):
        # Never expose the password hash
        return {
            'id': self.id,
            'nome': self.name,
            'username': self.username,
            'permissoes': self.permissions or [],
            'status': self.status,
            'cargo': self.title,
            'atendePacientes': self.attends_patients,
            'especialidade': self.specialty,
            'conselho': self.council,
            'telefone': self.phone,
            'comissao': self.commission,
            'ultimoLogin': iso(self.last_login),
        }
