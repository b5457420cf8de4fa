# reship/infra/logger.py
"""
Logging for the reshipping core.

Configures one file logger per concern (transactions, orders, shipments,
storage, database, system) and the small helpers the use cases call. All
helpers are no-ops unless ENABLE_LOGGING or ENABLE_OUTPUT is switched on.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional


# Global switch for file logging
ENABLE_LOGGING = os.environ.get("RESHIP_LOGGING", "0") == "1"
# Global switch for console output
ENABLE_OUTPUT = False


def print_system(*args, **kwargs):
    """print() gated by ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configure a named logger writing to `log_file`.

    The file itself is only opened on the first record.

    Args:
        name: Logger name
        log_file: Log file path
        level: Logging level

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


# Log directory (RESHIP_LOG_DIR overrides the default next to the package)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("RESHIP_LOG_DIR", str(BASE_DIR / "logs")))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "orders": LOGS_DIR / "orders.log",
    "shipments": LOGS_DIR / "shipments.log",
    "storage": LOGS_DIR / "storage.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('reship.transactions', str(LOG_FILES["transactions"]))
order_logger = setup_logger('reship.orders', str(LOG_FILES["orders"]))
shipment_logger = setup_logger('reship.shipments', str(LOG_FILES["shipments"]))
storage_logger = setup_logger('reship.storage', str(LOG_FILES["storage"]))
database_logger = setup_logger('reship.database', str(LOG_FILES["database"]))
system_logger = setup_logger('reship.system', str(LOG_FILES["system"]))


def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Log one complete operation.

    Args:
        operation: Operation name (confirm_ship, confirm_storage, ...)
        data: Operation input
        result: Operation result (optional)
        error: Error message (optional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_order(action: str, order_id: str, status: Optional[str] = None, **kwargs) -> None:
    """
    Log an order change.

    Args:
        action: What happened (create, advance, cancel, ...)
        order_id: Human-facing order id
        status: Status after the change (optional)
        **kwargs: Extra context
    """
    if not _enabled():
        return
    log_data = {"action": action, "order": order_id, "status": status, **kwargs}
    order_logger.info(f"ORDER_{action.upper()}: {log_data}")


def log_shipment(action: str, shipment_number: str, status: Optional[str] = None, **kwargs) -> None:
    if not _enabled():
        return
    log_data = {"action": action, "shipment": shipment_number, "status": status, **kwargs}
    shipment_logger.info(f"SHIPMENT_{action.upper()}: {log_data}")


def log_storage(action: str, location: Optional[str], order_id: Optional[str] = None, **kwargs) -> None:
    if not _enabled():
        return
    log_data = {"action": action, "location": location, "order": order_id, **kwargs}
    storage_logger.info(f"STORAGE_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log a database write.

    Args:
        table: Table name
        operation: SQL operation (INSERT, UPDATE, DELETE)
        affected_rows: Number of rows touched
        **kwargs: Extra context
    """
    if not _enabled():
        return
    log_data = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log a system event.

    Args:
        event: Event name
        details: Extra details (optional)
        level: Log level (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {"event": event, "details": details or {}}
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Tail of a log file.

    Args:
        log_type: One of transactions, orders, shipments, storage, database, system
        lines: Number of lines to return

    Returns:
        The last `lines` lines, or a short notice when the log does not exist
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} not found."

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
