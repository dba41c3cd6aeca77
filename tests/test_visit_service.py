from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from app.errors import (
    AppointmentNotFound,
    InsufficientStock,
    ProcedureNotFound,
    ProductNotFound,
    ValidationError,
)
from app.extensions import db
from app.models import (
    Appointment,
    ClinicalNote,
    FinancialTransaction,
    Movement,
    Patient,
    Procedure,
    Product,
)
from app.services import complete_visit, post_procedure_revenue


def _count(session, model, *criteria):
    return session.execute(select(func.count()).select_from(model).where(*criteria)).scalar_one()


def _revenues(session, appointment_id):
    return session.execute(
        select(FinancialTransaction)
        .where(
            FinancialTransaction.type == FinancialTransaction.REVENUE,
            FinancialTransaction.appointment_id == appointment_id,
        )
        .order_by(FinancialTransaction.id)
    ).scalars().all()


def test_completes_with_note_supplies_and_procedures(session, appointment, gauze, stock, procedures):
    botox, peeling = procedures
    stock(gauze, 10, '3.00')

    result = complete_visit(
        session,
        appointment.id,
        note_text='  Aplicação sem intercorrências  ',
        consumed_supplies=[(gauze.id, 3)],
        procedure_ids=[botox.id, peeling.id],
    )

    assert result.status == Appointment.CONCLUDED
    assert session.get(Product, gauze.id).quantity == 7

    notes = ClinicalNote.query.filter_by(patient_id=appointment.patient_id).all()
    assert len(notes) == 1
    assert notes[0].text == 'Aplicação sem intercorrências'
    assert notes[0].practitioner_id == appointment.practitioner_id

    exits = Movement.query.filter_by(type=Movement.EXIT, appointment_id=appointment.id).all()
    assert len(exits) == 1
    assert exits[0].supplier == 'Consumo em Consulta'
    assert exits[0].unit_value == Decimal('3')

    revenues = _revenues(session, appointment.id)
    assert [r.amount for r in revenues] == [Decimal('800.00'), Decimal('250.50')]
    assert revenues[0].description == 'Botox - Maria Silva'
    assert all(r.category == 'PROCEDIMENTO' for r in revenues)

    assert {p.id for p in result.procedures} == {botox.id, peeling.id}


def test_failing_supply_line_rolls_back_everything(session, appointment, gauze, syringe, stock, procedures):
    botox, _ = procedures
    stock(gauze, 10)
    stock(syringe, 1)

    with pytest.raises(InsufficientStock) as exc:
        complete_visit(
            session,
            appointment.id,
            note_text='Evolução',
            consumed_supplies=[(gauze.id, 3), (syringe.id, 5)],
            procedure_ids=[botox.id],
        )

    assert 'Seringa' in exc.value.message
    assert session.get(Product, gauze.id).quantity == 10
    assert session.get(Product, syringe.id).quantity == 1
    assert session.get(Appointment, appointment.id).status == Appointment.SCHEDULED
    assert _count(session, ClinicalNote) == 0
    assert _count(session, Movement, Movement.type == Movement.EXIT) == 0
    assert _count(session, FinancialTransaction) == 0


def test_unknown_product_rolls_back(session, appointment, gauze, stock):
    stock(gauze, 5)

    with pytest.raises(ProductNotFound):
        complete_visit(session, appointment.id, consumed_supplies=[(gauze.id, 1), (999, 1)])

    assert session.get(Product, gauze.id).quantity == 5
    assert session.get(Appointment, appointment.id).status == Appointment.SCHEDULED


def test_unknown_procedure_fails_before_touching_stock(session, appointment, gauze, stock, procedures):
    botox, _ = procedures
    stock(gauze, 5)

    with pytest.raises(ProcedureNotFound) as exc:
        complete_visit(
            session,
            appointment.id,
            consumed_supplies=[(gauze.id, 2)],
            procedure_ids=[botox.id, 12345],
        )

    assert exc.value.procedure_ids == [12345]
    assert session.get(Product, gauze.id).quantity == 5
    assert _count(session, FinancialTransaction) == 0


def test_inactive_procedure_is_rejected(session, appointment, procedures):
    botox, _ = procedures
    botox.status = Procedure.INACTIVE
    session.commit()

    with pytest.raises(ProcedureNotFound):
        complete_visit(session, appointment.id, procedure_ids=[botox.id])

    assert session.get(Appointment, appointment.id).status == Appointment.SCHEDULED


def test_bare_completion_only_changes_status(session, appointment):
    result = complete_visit(session, appointment.id)

    assert result.status == Appointment.CONCLUDED
    assert _count(session, ClinicalNote) == 0
    assert _count(session, Movement) == 0
    assert _count(session, FinancialTransaction) == 0


@pytest.mark.parametrize('note_text', [None, '', '   '])
def test_blank_note_is_not_recorded(session, appointment, note_text):
    complete_visit(session, appointment.id, note_text=note_text)

    assert _count(session, ClinicalNote) == 0


def test_same_product_on_two_lines(session, appointment, gauze, stock):
    stock(gauze, 5)

    complete_visit(session, appointment.id, consumed_supplies=[(gauze.id, 2), (gauze.id, 3)])

    assert session.get(Product, gauze.id).quantity == 0


def test_same_product_on_two_lines_beyond_balance(session, appointment, gauze, stock):
    stock(gauze, 4)

    with pytest.raises(InsufficientStock):
        complete_visit(session, appointment.id, consumed_supplies=[(gauze.id, 2), (gauze.id, 3)])

    assert session.get(Product, gauze.id).quantity == 4


def test_procedures_are_added_to_existing_ones(session, appointment, procedures):
    botox, peeling = procedures
    appointment.procedures.append(botox)
    session.commit()

    result = complete_visit(session, appointment.id, procedure_ids=[peeling.id])

    assert {p.id for p in result.procedures} == {botox.id, peeling.id}
    assert [r.amount for r in _revenues(session, appointment.id)] == [Decimal('250.50')]


def test_revenue_is_a_price_snapshot(session, appointment, procedures):
    botox, _ = procedures
    complete_visit(session, appointment.id, procedure_ids=[botox.id])

    botox.price = Decimal('999.00')
    session.commit()

    assert _revenues(session, appointment.id)[0].amount == Decimal('800.00')


def test_already_concluded_cannot_be_completed_again(session, appointment):
    complete_visit(session, appointment.id)

    with pytest.raises(ValidationError):
        complete_visit(session, appointment.id)


def test_cancelled_cannot_be_completed(session, appointment):
    appointment.status = Appointment.CANCELLED
    session.commit()

    with pytest.raises(ValidationError):
        complete_visit(session, appointment.id)


def test_missing_appointment(session):
    with pytest.raises(AppointmentNotFound):
        complete_visit(session, 999)


def test_invalid_supply_quantity(session, appointment, gauze, stock):
    stock(gauze, 5)

    with pytest.raises(ValidationError):
        complete_visit(session, appointment.id, consumed_supplies=[(gauze.id, 0)])

    assert session.get(Appointment, appointment.id).status == Appointment.SCHEDULED


def test_revenue_poster_uses_resolved_procedures(session, appointment, procedures):
    botox, _ = procedures

    postings = post_procedure_revenue(session, appointment, [botox])

    assert len(postings) == 1
    assert postings[0].amount == Decimal('800.00')
    assert postings[0].appointment_id == appointment.id


@pytest.fixture
def file_engine(tmp_path):
    """A file database, so two sessions hold separate connections."""
    engine = create_engine(f"sqlite:///{tmp_path / 'clinica.db'}")
    db.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_stale_read_cannot_complete_twice(file_engine):
    with Session(file_engine) as setup:
        patient = Patient(name='Maria Silva', whatsapp='11999990000')
        botox = Procedure(name='Botox', price=Decimal('800.00'))
        peeling = Procedure(name='Peeling', price=Decimal('250.50'))
        setup.add_all([patient, botox, peeling])
        setup.flush()
        appointment = Appointment(scheduled_at=datetime(2030, 1, 10, 9, 0), patient_id=patient.id)
        setup.add(appointment)
        setup.commit()
        appointment_id, botox_id, peeling_id = appointment.id, botox.id, peeling.id

    first = Session(file_engine)
    second = Session(file_engine)
    try:
        # Second front desk opened the appointment before the first one finished
        assert second.get(Appointment, appointment_id).status == Appointment.SCHEDULED

        complete_visit(first, appointment_id, procedure_ids=[botox_id])

        with pytest.raises(ValidationError):
            complete_visit(second, appointment_id, procedure_ids=[peeling_id])
    finally:
        first.close()
        second.close()

    with Session(file_engine) as check:
        revenues = check.execute(select(FinancialTransaction)).scalars().all()
        assert [r.amount for r in revenues] == [Decimal('800.00')]
        assert check.get(Appointment, appointment_id).status == Appointment.CONCLUDED
