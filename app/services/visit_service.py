"""
Visit completion.

Closes a scheduled appointment: marks it concluded, records the clinical note,
consumes supplies from stock and posts one revenue per performed procedure.
Either every effect is committed or none is.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from app.errors import AppointmentNotFound, ValidationError
from app.models import Appointment, Movement
from app.services.clinical_note_service import append_note
from app.services.finance_service import post_procedure_revenue, resolve_procedures
from app.services.inventory_service import record_movement
from app.utils.transaction import atomic

logger = logging.getLogger(__name__)

CONSUMPTION_SUPPLIER = 'Consumo em Consulta'


def get_appointment(session, appointment_id) -> Appointment:
    stmt = (
        select(Appointment)
        .options(joinedload(Appointment.patient))
        .where(Appointment.id == appointment_id, Appointment.deleted_at.is_(None))
    )
    appointment = session.execute(stmt).scalar_one_or_none()
    if appointment is None:
        raise AppointmentNotFound(appointment_id)
    return appointment


def _load_appointment_for_update(session, appointment_id) -> Appointment:
    stmt = (
        select(Appointment)
        .where(Appointment.id == appointment_id, Appointment.deleted_at.is_(None))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    appointment = session.execute(stmt).scalar_one_or_none()
    if appointment is None:
        raise AppointmentNotFound(appointment_id)
    return appointment


def _ensure_scheduled(appointment: Appointment) -> None:
    if appointment.status != Appointment.SCHEDULED:
        logger.warning(
            "Appointment %s not completed: status is %s", appointment.id, appointment.status
        )
        raise ValidationError(
            f'Agendamento com status "{appointment.status}" não pode ser finalizado.'
        )


def complete_visit(
    session,
    appointment_id: int,
    note_text: Optional[str] = None,
    consumed_supplies: Iterable[Tuple[int, int]] = (),
    procedure_ids: Iterable[int] = (),
) -> Appointment:
    """
    Finalize an appointment.

    Args:
        consumed_supplies: (product_id, quantity) pairs taken from stock.
        procedure_ids: catalog ids performed during the visit. They are added
            to whatever procedures the appointment already references.

    Raises:
        AppointmentNotFound, ProductNotFound, ProcedureNotFound,
        InsufficientStock, ValidationError. Nothing is persisted on failure.
    """
    _ensure_scheduled(get_appointment(session, appointment_id))

    supplies = list(consumed_supplies or [])
    procedure_ids = list(procedure_ids or [])

    with atomic(session):
        # The status read above may be stale; the locked row is authoritative
        appointment = _load_appointment_for_update(session, appointment_id)
        _ensure_scheduled(appointment)

        appointment.status = Appointment.CONCLUDED
        procedures = resolve_procedures(session, procedure_ids)
        for procedure in procedures:
            if procedure not in appointment.procedures:
                appointment.procedures.append(procedure)

        if note_text and str(note_text).strip():
            append_note(
                session,
                appointment.patient_id,
                note_text,
                practitioner_id=appointment.practitioner_id,
            )

        for product_id, quantity in supplies:
            record_movement(
                session,
                product_id,
                Movement.EXIT,
                quantity,
                unit_value=None,
                supplier=CONSUMPTION_SUPPLIER,
                appointment_id=appointment.id,
            )

        revenues = post_procedure_revenue(session, appointment, procedures)

    logger.info(
        "Appointment %s concluded: %d supply line(s), %d revenue posting(s)",
        appointment_id, len(supplies), len(revenues),
    )
    return appointment
