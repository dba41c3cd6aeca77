from .inventory_service import (
    record_movement,
    register_movement,
    create_product,
    replay_balance,
    list_history,
    weighted_average,
)

from .clinical_note_service import append_note

from .finance_service import (
    resolve_procedures,
    post_procedure_revenue,
    post_stock_expense,
    post_manual_transaction,
    list_transactions,
    summarize,
)

from .visit_service import complete_visit, get_appointment

__all__ = [
    # Inventory
    "record_movement",
    "register_movement",
    "create_product",
    "replay_balance",
    "list_history",
    "weighted_average",
    # Clinical notes
    "append_note",
    # Finance
    "resolve_procedures",
    "post_procedure_revenue",
    "post_stock_expense",
    "post_manual_transaction",
    "list_transactions",
    "summarize",
    # Visits
    "complete_visit",
    "get_appointment",
]
