"""
Financial postings.

Revenues are posted per performed procedure at visit completion; expenses are
posted for priced stock entries. Amounts are snapshots: later catalog price
changes never alter historical entries.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from sqlalchemy import select

from app.errors import ProcedureNotFound, ValidationError
from app.models import FinancialTransaction, Procedure
from app.utils.parsing import end_of_day, to_decimal
from app.utils.transaction import atomic

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
REVENUE_CATEGORY = 'PROCEDIMENTO'
EXPENSE_CATEGORY = 'ESTOQUE'
DEFAULT_CATEGORY = 'OUTROS'


def _normalize_ids(procedure_ids: Iterable) -> List[int]:
    """Unique integer ids, first occurrence order kept."""
    seen = []
    invalid = []
    for raw in procedure_ids or []:
        try:
            pk = int(raw)
        except (TypeError, ValueError):
            invalid.append(raw)
            continue
        if pk not in seen:
            seen.append(pk)
    if invalid:
        raise ProcedureNotFound(invalid)
    return seen


def resolve_procedures(session, procedure_ids: Iterable) -> List[Procedure]:
    """
    Look up active catalog entries for the given ids.

    Raises ProcedureNotFound naming every id that is unknown or inactive.
    """
    ids = _normalize_ids(procedure_ids)
    if not ids:
        return []
    found = {
        p.id: p
        for p in session.execute(select(Procedure).where(Procedure.id.in_(ids))).scalars()
    }
    missing = [pk for pk in ids if pk not in found or found[pk].status != Procedure.ACTIVE]
    if missing:
        raise ProcedureNotFound(missing)
    return [found[pk] for pk in ids]


def post_procedure_revenue(session, appointment, procedures: Iterable[Procedure]) -> List[FinancialTransaction]:
    """
    One revenue per procedure, priced at the catalog value right now.
    Expects procedures already checked by `resolve_procedures`. Does not commit.
    """
    patient_name = appointment.patient.name if appointment.patient else None
    now = datetime.utcnow()

    postings = []
    for procedure in procedures:
        posting = FinancialTransaction(
            type=FinancialTransaction.REVENUE,
            category=REVENUE_CATEGORY,
            description=f"{procedure.name} - {patient_name}",
            amount=Decimal(procedure.price).quantize(CENTS, rounding=ROUND_HALF_UP),
            occurred_at=now,
            appointment_id=appointment.id,
        )
        session.add(posting)
        postings.append(posting)

    session.flush()
    return postings


def post_stock_expense(session, product, movement) -> FinancialTransaction:
    """Expense for a purchased lot, linked to its entry movement. Does not commit."""
    total = (Decimal(movement.quantity) * Decimal(movement.unit_value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    posting = FinancialTransaction(
        type=FinancialTransaction.EXPENSE,
        category=EXPENSE_CATEGORY,
        description=f"Compra: {product.name} ({movement.quantity} {product.unit}s)",
        amount=total,
        occurred_at=datetime.utcnow(),
        movement_id=movement.id,
    )
    session.add(posting)
    session.flush()
    return posting


def post_manual_transaction(session, description, amount, transaction_type, category=None, occurred_at=None):
    """Manual entries such as rent or utilities."""
    if not description or not str(description).strip():
        raise ValidationError('Campo "descricao" é obrigatório.')
    if transaction_type not in FinancialTransaction.TYPES:
        raise ValidationError(f'Campo "tipo" inválido. Use: {", ".join(FinancialTransaction.TYPES)}')
    value = to_decimal(amount, 'valor')
    if value <= 0:
        raise ValidationError('Campo "valor" deve ser maior que zero.')

    with atomic(session):
        posting = FinancialTransaction(
            type=transaction_type,
            category=category or DEFAULT_CATEGORY,
            description=str(description).strip(),
            amount=value.quantize(CENTS, rounding=ROUND_HALF_UP),
            occurred_at=occurred_at or datetime.utcnow(),
        )
        session.add(posting)

    logger.info("Manual %s posted: %s (%s)", transaction_type, posting.description, posting.amount)
    return posting


def list_transactions(session, start=None, end=None) -> List[FinancialTransaction]:
    """
    Postings between `start` and the end of `end`'s day.
    Defaults to the current month up to today.
    """
    today = datetime.utcnow()
    start = start or today.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = end_of_day(end or today)

    stmt = (
        select(FinancialTransaction)
        .where(FinancialTransaction.occurred_at >= start, FinancialTransaction.occurred_at <= end)
        .order_by(FinancialTransaction.occurred_at.desc(), FinancialTransaction.id.desc())
    )
    return session.execute(stmt).scalars().all()


def summarize(postings) -> dict:
    """Totals for a listing."""
    revenue = sum((p.amount for p in postings if p.type == FinancialTransaction.REVENUE), Decimal('0'))
    expense = sum((p.amount for p in postings if p.type == FinancialTransaction.EXPENSE), Decimal('0'))
    return {
        'receitas': float(revenue),
        'despesas': float(expense),
        'saldo': float(revenue - expense),
    }
