from .decorators import require_permission, get_current_user, current_user_id

from .audit import log_audit

from .transaction import atomic

from .parsing import (
    to_decimal,
    to_quantity,
    to_int,
    to_text,
    to_bool,
    parse_datetime,
    parse_date,
    end_of_day,
)

__all__ = [
    # Decorators
    "require_permission",
    "get_current_user",
    "current_user_id",
    # Audit
    "log_audit",
    # Transactions
    "atomic",
    # Parsing
    "to_decimal",
    "to_quantity",
    "to_int",
    "to_text",
    "to_bool",
    "parse_datetime",
    "parse_date",
    "end_of_day",
]
