from .patient import Patient, Anamnesis
from .practitioner import Practitioner
from .user import User
from .procedure import Procedure
from .appointment import Appointment, appointment_procedures
from .clinical_note import ClinicalNote
from .product import Product
from .movement import Movement
from .financial_transaction import FinancialTransaction
from .audit_log import AuditLog

__all__ = [
    "Patient", "Anamnesis", "Practitioner", "User", "Procedure", "Appointment",
    "appointment_procedures", "ClinicalNote", "Product", "Movement",
    "FinancialTransaction", "AuditLog",
]
