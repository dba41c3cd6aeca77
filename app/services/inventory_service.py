"""
Inventory ledger.

Every change to a product's balance is an appended Movement row. The product
keeps a denormalized running quantity and weighted-average unit cost that are
only written together with that row, inside the caller's transaction.
"""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import case, func, select

from app.errors import InsufficientStock, ProductNotFound, ValidationError
from app.models import Movement, Product
from app.services.finance_service import post_stock_expense
from app.utils.parsing import to_decimal, to_quantity
from app.utils.transaction import atomic

logger = logging.getLogger(__name__)

COST_PLACES = Decimal('0.0001')
MANUAL_EXIT_SUPPLIER = 'Baixa Manual'


def weighted_average(current_qty: int, current_avg, incoming_qty: int, incoming_unit) -> Decimal:
    """
    Blend the current average cost with an incoming lot.

    Returns the current average untouched when the resulting total is zero.
    """
    current_avg = Decimal(current_avg or 0)
    total = current_qty + incoming_qty
    if total <= 0:
        return current_avg
    stock_value = Decimal(current_qty) * current_avg + Decimal(incoming_qty) * Decimal(incoming_unit)
    return (stock_value / Decimal(total)).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def _load_product_for_update(session, product_id) -> Product:
    try:
        pk = int(product_id)
    except (TypeError, ValueError):
        raise ProductNotFound(product_id)

    stmt = (
        select(Product)
        .where(Product.id == pk)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    product = session.execute(stmt).scalar_one_or_none()
    if product is None:
        raise ProductNotFound(product_id)
    return product


def record_movement(
    session,
    product_id,
    movement_type: str,
    quantity,
    unit_value=0,
    supplier: Optional[str] = None,
    batch: Optional[str] = None,
    expiry=None,
    appointment_id: Optional[int] = None,
) -> Movement:
    """
    Append one movement and apply it to the product's running balance.

    `unit_value=None` values the movement at the product's current average
    cost (used for consumption). Does not commit.

    Raises:
        ValidationError: bad type, non-positive quantity or negative value.
        ProductNotFound: product does not exist.
        InsufficientStock: an exit larger than the available quantity.
    """
    if movement_type not in Movement.TYPES:
        raise ValidationError(f'Tipo de movimentação inválido. Use: {", ".join(Movement.TYPES)}')
    qty = to_quantity(quantity)

    product = _load_product_for_update(session, product_id)

    if unit_value is None:
        unit = Decimal(product.average_cost or 0)
    else:
        unit = to_decimal(unit_value, 'valorUnitario', default='0')
        if unit < 0:
            raise ValidationError('Campo "valorUnitario" não pode ser negativo.')

    if movement_type == Movement.EXIT and qty > product.quantity:
        logger.warning(
            "Insufficient stock for product %s (%s): requested %s, available %s",
            product.id, product.name, qty, product.quantity,
        )
        raise InsufficientStock(product.name, product.quantity, qty)

    movement = Movement(
        type=movement_type,
        quantity=qty,
        unit_value=unit,
        supplier=supplier,
        batch=batch,
        expiry=expiry,
        product_id=product.id,
        appointment_id=appointment_id,
    )
    session.add(movement)

    if movement_type == Movement.ENTRY:
        product.average_cost = weighted_average(product.quantity, product.average_cost, qty, unit)
        product.quantity = product.quantity + qty
    else:
        product.quantity = product.quantity - qty

    session.flush()
    logger.debug("Movement %s %s x%s on product %s", movement.id, movement_type, qty, product.id)
    return movement


def register_movement(
    session,
    product_id,
    movement_type: str,
    quantity,
    unit_value=0,
    supplier: Optional[str] = None,
    batch: Optional[str] = None,
    expiry=None,
) -> Movement:
    """
    Manual stock entry/exit: ledger movement plus, for a priced entry, the
    matching expense, committed as one unit.
    """
    if movement_type == Movement.EXIT and not supplier:
        supplier = MANUAL_EXIT_SUPPLIER

    with atomic(session):
        movement = record_movement(
            session,
            product_id,
            movement_type,
            quantity,
            unit_value=unit_value,
            supplier=supplier,
            batch=batch,
            expiry=expiry,
        )
        if movement.type == Movement.ENTRY and movement.quantity * movement.unit_value > 0:
            post_stock_expense(session, movement.product, movement)

    logger.info(
        "Registered %s of %s unit(s) for product %s",
        movement.type, movement.quantity, movement.product_id,
    )
    return movement


def create_product(session, name, category=None, unit=None, minimum=0, average_cost=0) -> Product:
    """Catalog a new product with an empty balance."""
    if not name or not str(name).strip():
        raise ValidationError('Campo "nome" é obrigatório.')
    minimum = to_decimal(minimum, 'min', default='0')
    if minimum != minimum.to_integral_value():
        raise ValidationError('Campo "min" deve ser um número inteiro.')
    minimum = int(minimum)
    if minimum < 0:
        raise ValidationError('Campo "min" não pode ser negativo.')
    cost = to_decimal(average_cost, 'precoMedio', default='0')
    if cost < 0:
        raise ValidationError('Campo "precoMedio" não pode ser negativo.')

    with atomic(session):
        product = Product(
            name=str(name).strip(),
            category=category,
            unit=unit or 'unidade',
            minimum=minimum,
            quantity=0,
            average_cost=cost.quantize(COST_PLACES, rounding=ROUND_HALF_UP),
        )
        session.add(product)
    return product


def replay_balance(session, product_id) -> int:
    """Rebuild a product's balance from its movement log."""
    signed = case((Movement.type == Movement.ENTRY, Movement.quantity), else_=-Movement.quantity)
    total = session.execute(
        select(func.coalesce(func.sum(signed), 0)).where(Movement.product_id == product_id)
    ).scalar_one()
    return int(total)


def list_history(session, limit: int = 100):
    """Most recent movements first."""
    stmt = (
        select(Movement)
        .order_by(Movement.recorded_at.desc(), Movement.id.desc())
        .limit(limit)
    )
    return session.execute(stmt).scalars().all()
