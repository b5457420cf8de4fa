from pathlib import Path

from typer.testing import CliRunner

from reship.adapters.cli import app
from reship.domain.models import OrderStatus
from reship.usecases import orders, registry

runner = CliRunner()


def _migrated(tmp_path: Path) -> str:
    db_path = str(tmp_path / "reship_cli.sqlite")
    result = runner.invoke(app, ["migrate", "--db", db_path])
    assert result.exit_code == 0, result.output
    return db_path


def test_cli_migrate_and_settings_show(tmp_path: Path):
    db_path = _migrated(tmp_path)
    result = runner.invoke(app, ["settings", "show", "--db", db_path])
    assert result.exit_code == 0, result.output
    assert "Settings" in result.stdout


def test_cli_settings_set_and_get(tmp_path: Path):
    db_path = _migrated(tmp_path)
    result = runner.invoke(app, ["settings", "get", "shipping_rate_normal", "--db", db_path])
    assert result.exit_code == 0
    assert result.stdout.strip() == "280.0"

    result = runner.invoke(
        app, ["settings", "set", "shipping_rate_normal=300", "delivery_days_fast=2-4", "--db", db_path]
    )
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["settings", "get", "shipping_rate_normal", "--db", db_path])
    assert result.stdout.strip() == "300"
    result = runner.invoke(app, ["settings", "get", "delivery_days_fast", "--db", db_path])
    assert result.stdout.strip() == "2-4"


def test_cli_settings_errors(tmp_path: Path):
    db_path = _migrated(tmp_path)
    result = runner.invoke(app, ["settings", "set", "colour=blue", "--db", db_path])
    assert result.exit_code == 1
    assert "UNKNOWN_SETTING" in result.stdout

    result = runner.invoke(app, ["settings", "set", "shipping_rate_fast", "--db", db_path])
    assert result.exit_code != 0

    result = runner.invoke(app, ["settings", "set", "commission_type=bonus", "--db", db_path])
    assert result.exit_code == 1


def test_cli_order_to_storage(tmp_path: Path):
    db_path = _migrated(tmp_path)
    client = registry.add_client("Sidi", phone="+222 1", db_path=db_path)["id"]
    store = registry.add_store("Amazon AE", estimated_delivery_days=1, db_path=db_path)["id"]
    registry.set_currency("USD", 40, db_path=db_path)

    result = runner.invoke(app, [
        "order", "create", "--client", client, "--store", store,
        "--price", "12,50", "--currency", "usd", "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    order = orders.get_order("FCD1001", db_path=db_path)
    assert order.price == 12.5

    for args in (["order", "tracking", "FCD1001", "TRK1"], ["order", "advance", "FCD1001"], ["order", "advance", "FCD1001"]):
        result = runner.invoke(app, args + ["--db", db_path])
        assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["order", "advance", "FCD1001", "--db", db_path])
    assert result.exit_code == 1
    assert "TRANSITION_NOT_MANUAL" in result.stdout

    steps = [
        ["shipment", "create", "SH-1", "--boxes", "1", "--orders", "FCD1001:1"],
        ["shipment", "ship", "SH-1", "--tracking", "AWB1"],
        ["shipment", "box-arrived", "SH-1", "1"],
        ["drawer", "add", "A", "--capacity", "10"],
        ["storage", "suggest", "FCD1001"],
        ["storage", "confirm", "FCD1001", "--weight", "1,5", "--location", "A-01"],
        ["drawer", "list"],
        ["notify", "FCD1001", "--lang", "ar"],
        ["label", "FCD1001"],
        ["rel", "billing"],
        ["rel", "storage"],
        ["rel", "shipments"],
        ["rel", "orders", "--status", "stored"],
        ["rel", "late"],
        ["rel", "audit", "--limit", "5"],
    ]
    for args in steps:
        result = runner.invoke(app, args + ["--db", db_path])
        assert result.exit_code == 0, (args, result.output)

    order = orders.get_order("FCD1001", db_path=db_path)
    assert order.status == OrderStatus.STORED
    assert (order.storage_location, order.weight, order.shipping_cost) == ("A-01", 1.5, 420.0)

    result = runner.invoke(app, ["deliver", client, "FCD1001", "--db", db_path])
    assert result.exit_code == 0, result.output
    assert orders.get_order("FCD1001", db_path=db_path).status == OrderStatus.COMPLETED


def test_cli_bad_assignment_list(tmp_path: Path):
    db_path = _migrated(tmp_path)
    result = runner.invoke(app, ["shipment", "create", "SH-1", "--orders", "FCD1001:x", "--db", db_path])
    assert result.exit_code == 2


def test_cli_notify_refuses_incomplete_totals(tmp_path: Path):
    db_path = _migrated(tmp_path)
    client = registry.add_client("Sidi", db_path=db_path)["id"]
    store = registry.add_store("Zalando", db_path=db_path)["id"]
    ref = orders.create_order(client, store, 80, currency="EUR", db_path=db_path)["local_order_id"]

    result = runner.invoke(app, ["notify", ref, "--db", db_path])
    assert result.exit_code == 1
    assert "INCOMPLETE_TOTALS" in result.stdout
    assert "missing exchange rate for EUR" in result.stdout

    registry.set_currency("EUR", 44, db_path=db_path)
    result = runner.invoke(app, ["notify", ref, "--db", db_path])
    assert result.exit_code == 0, result.output
    assert f"#{ref}" in result.stdout
