from .auth import auth_bp
from .patient import patient_bp
from .practitioner import practitioner_bp
from .user import user_bp
from .appointment import appointment_bp
from .procedure import procedure_bp
from .inventory import inventory_bp
from .finance import finance_bp
from .health import health_bp, status_bp

__all__ = [
    'auth_bp', 'patient_bp', 'practitioner_bp', 'user_bp', 'appointment_bp',
    'procedure_bp', 'inventory_bp', 'finance_bp', 'health_bp', 'status_bp',
]
