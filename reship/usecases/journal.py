# reship/usecases/journal.py
"""
Shared plumbing for the use cases: entity history, audit trail and the
start/success/error logging around every operation.
"""
from __future__ import annotations

import functools
import sqlite3
from typing import Any, Callable, Dict, Optional

from reship.domain.lifecycle import history_entry, now_iso
from reship.domain.models import AuditEntry, Order, Shipment
from reship.infra.logger import log_database_operation, log_system_event, log_transaction
from reship.infra.repositories import AuditRepo, HistoryRepo

DEFAULT_USER = "system"


def record_order(conn: sqlite3.Connection, order: Order, activity: str, user: str) -> None:
    """Append one history line to an order (in memory and in the database)."""
    entry = history_entry(activity, user)
    order.history.append(entry)
    HistoryRepo(conn).append("order", order.id, entry)


def record_shipment(conn: sqlite3.Connection, shipment: Shipment, activity: str, user: str) -> None:
    entry = history_entry(activity, user)
    shipment.history.append(entry)
    HistoryRepo(conn).append("shipment", shipment.id, entry)


def audit(
    conn: sqlite3.Connection,
    user: str,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    details: Optional[str] = None,
) -> None:
    AuditRepo(conn).insert(
        AuditEntry(
            timestamp=now_iso(),
            user=user,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
    )
    log_database_operation("audit_log", "INSERT", 1, action=action, entity=entity_id)


def logged(operation: str) -> Callable:
    """
    Wrap a use case with `<operation>_start/_success/_error` system events and
    a transaction log line. Errors are logged and re-raised untouched.
    """
    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            data: Dict[str, Any] = {
                "args": list(args),
                **{k: v for k, v in kwargs.items() if k != "db_path"},
            }
            log_system_event(f"{operation}_start", data)
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                log_transaction(operation, data, error=str(e))
                log_system_event(f"{operation}_error", {"error": str(e)}, level="error")
                raise
            log_transaction(operation, data, result=result)
            log_system_event(f"{operation}_success", data)
            return result
        return wrapper
    return decorator
