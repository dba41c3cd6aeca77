"""
Domain errors raised by the service layer.

Routes translate these into JSON responses; anything that is not a
ClinicError is treated as an unexpected internal error.
"""


class ClinicError(Exception):
    """Base class for recoverable, client-facing failures."""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'success': False, 'erro': self.message}


class ValidationError(ClinicError):
    status_code = 400


class NotFound(ClinicError):
    status_code = 404


class AppointmentNotFound(NotFound):
    def __init__(self, appointment_id=None):
        super().__init__('Agendamento não encontrado')
        self.appointment_id = appointment_id


class PatientNotFound(NotFound):
    def __init__(self, patient_id=None):
        super().__init__('Paciente não encontrado')
        self.patient_id = patient_id


class ProductNotFound(NotFound):
    def __init__(self, product_id=None):
        super().__init__('Produto não encontrado.')
        self.product_id = product_id


class ProcedureNotFound(NotFound):
    def __init__(self, procedure_ids=()):
        ids = ', '.join(str(i) for i in procedure_ids)
        super().__init__(f'Procedimento(s) não encontrado(s) ou inativo(s): {ids}')
        self.procedure_ids = list(procedure_ids)


class InsufficientStock(ClinicError):
    status_code = 400

    def __init__(self, product_name, available, requested):
        super().__init__(
            f'Estoque insuficiente para: {product_name}. Disponível: {available}'
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested
