"""Logging helpers write one line per event to their own file when enabled."""

import pytest

from reship.domain.errors import ValidationError
from reship.infra import logger
from reship.usecases import registry


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    """Point every logger at a temporary directory and switch logging on."""
    files = {name: tmp_path / f"{name}.log" for name in logger.LOG_FILES}
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    monkeypatch.setattr(logger, "LOG_FILES", files)
    for attr, name in [
        ("transaction_logger", "transactions"),
        ("order_logger", "orders"),
        ("shipment_logger", "shipments"),
        ("storage_logger", "storage"),
        ("database_logger", "database"),
        ("system_logger", "system"),
    ]:
        monkeypatch.setattr(logger, attr, logger.setup_logger(f"reship.test.{name}", str(files[name])))
    return files


def _flush():
    for attr in ("transaction_logger", "order_logger", "shipment_logger", "storage_logger",
                 "database_logger", "system_logger"):
        for handler in getattr(logger, attr).handlers:
            handler.flush()


def test_helpers_write_to_their_files(log_dir):
    logger.log_system_event("test_start", {"test_id": "logging"})
    logger.log_order("create", "FCD1001", "new", client="c1")
    logger.log_shipment("ship", "SH-1", "shipped", tracking="AWB")
    logger.log_storage("confirm", "A-01", "FCD1001", weight=2)
    logger.log_database_operation("orders", "UPDATE", 3)
    logger.log_transaction("confirm_ship", {"shipment": "SH-1"}, result={"ok": True})
    logger.log_transaction("confirm_ship", {"shipment": "SH-2"}, error="boom")
    _flush()

    assert "SYSTEM_EVENT: test_start" in log_dir["system"].read_text(encoding="utf-8")
    assert "ORDER_CREATE" in log_dir["orders"].read_text(encoding="utf-8")
    assert "SHIPMENT_SHIP" in log_dir["shipments"].read_text(encoding="utf-8")
    assert "STORAGE_CONFIRM" in log_dir["storage"].read_text(encoding="utf-8")
    assert "DB_UPDATE" in log_dir["database"].read_text(encoding="utf-8")
    transactions = log_dir["transactions"].read_text(encoding="utf-8")
    assert "TRANSACTION_SUCCESS: confirm_ship" in transactions
    assert "TRANSACTION_FAILED: confirm_ship - boom" in transactions

    summary = logger.get_log_summary("orders", lines=5)
    assert "FCD1001" in summary
    assert logger.get_log_summary("unknown") == "Log unknown not found."


def test_use_case_failures_are_logged_and_reraised(log_dir, db_path):
    with pytest.raises(ValidationError):
        registry.set_currency("USD", 0, db_path=db_path)
    registry.set_currency("USD", 40, db_path=db_path)
    _flush()

    system = log_dir["system"].read_text(encoding="utf-8")
    assert "set_currency_error" in system
    assert "set_currency_success" in system
    assert "TRANSACTION_FAILED: set_currency" in log_dir["transactions"].read_text(encoding="utf-8")


def test_disabled_logging_writes_nothing(tmp_path, monkeypatch):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", False)
    monkeypatch.setattr(logger, "ENABLE_OUTPUT", False)
    logger.log_system_event("ignored")
    assert logger.get_log_summary("system") is None
