"""
Observability: structured logging scoped to ledger operations.

Usage:
    from timeledger.observability import configure_logging, OperationContext

    configure_logging("INFO")
    with OperationContext("cli.import"):
        ledger.import_snapshot(snapshot, merge=True)
"""

from .logging import (
    HumanFormatter,
    JSONFormatter,
    Operation,
    OperationContext,
    configure_logging,
    current_operation,
    generate_operation_id,
)
from .middleware import OperationIdMiddleware

__all__ = [
    "Operation",
    "OperationContext",
    "current_operation",
    "generate_operation_id",
    "JSONFormatter",
    "HumanFormatter",
    "configure_logging",
    "OperationIdMiddleware",
]
