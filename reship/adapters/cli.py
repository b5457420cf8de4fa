# reship/adapters/cli.py
"""
Reship CLI (Typer).

Main commands:
- migrate                         -> apply migrations and create views
- settings show/get/set           -> global settings (rates, commission, ids...)
- currency/client/store/company   -> reference data
- order ...                       -> create, tracking, advance, revert, cancel, split, show
- shipment ...                    -> create, edit, ship, box-arrived, receive, reconcile, show
- drawer ... / storage ...        -> drawers, slot suggestion, storage confirmation
- deliver                         -> hand stored orders to a client
- notify / label                  -> arrival message and label data
- rel ...                         -> reports (billing, late, storage, shipments, orders, audit)
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from reship.adapters.parsers import parse_assignments, parse_decimal
from reship.config import DB_PATH
from reship.domain.errors import ReshipError
from reship.infra.migrations import apply_migrations
from reship.infra.views import create_views
from reship.usecases import billing, delivery, notifications, orders, registry, reports, shipments, storage

app = typer.Typer(help="Reship: parcel reshipping back office")
console = Console()

USER_OPT = typer.Option("system", "--user", help="Operator recorded in history and audit")


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, bool):
        return "yes" if val else "no"
    if isinstance(val, float):
        return f"{val:,.2f}"
    if isinstance(val, (dict, list)):
        return escape(json.dumps(val, ensure_ascii=False, default=str))
    return escape(str(val))


_RIGHT = {"price", "weight", "shipping_cost", "product_total", "grand_total", "paid", "remaining",
          "total_due", "score", "orders", "capacity", "stored_orders", "used_slots", "days_late", "fill_pct"}
_STATUS_STYLE = {
    "completed": "bold green",
    "stored": "green",
    "cancelled": "dim",
    "delayed": "bold red",
    "partially_arrived": "yellow",
    "unpaid": "bold red",
    "partial": "yellow",
    "paid": "green",
}


def _display_table(data: Dict[str, Any] | List[Dict[str, Any]], title: str = "Result") -> None:
    """Render a list of rows as a table, a mapping as field/value pairs."""
    if not data:
        console.print(Panel("No data", title=title, border_style="yellow"))
        return

    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        columns = list(data[0].keys())
        for column in columns:
            table.add_column(column, justify="right" if column in _RIGHT else "left")
        for row in data:
            values = []
            for col in columns:
                text = _fmt(row.get(col))
                style = _STATUS_STYLE.get(text) if col in ("status", "payment_status") else None
                values.append(f"[{style}]{text}[/]" if style else text)
            table.add_row(*values)
        console.print(table)
        return

    if isinstance(data, dict):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Field")
        table.add_column("Value")
        nested = {}
        for key, val in data.items():
            if isinstance(val, list) and val and isinstance(val[0], dict):
                nested[key] = val
            elif isinstance(val, dict) and val:
                nested[key] = val
            else:
                table.add_row(key, _fmt(val))
        console.print(table)
        for key, val in nested.items():
            _display_table(val, title=key.replace("_", " ").title())
        return

    _print_json(data)


def _run(fn: Callable[..., Any], *args, **kwargs) -> Any:
    """Call a use case; domain errors become a red panel and exit code 1."""
    try:
        return fn(*args, **kwargs)
    except ReshipError as e:
        console.print(Panel(escape(e.message), title=e.code, border_style="red"))
        raise typer.Exit(code=1)


def _decimal(txt: Optional[str], name: str) -> Optional[float]:
    try:
        return parse_decimal(txt)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=name)


def _assignments(txt: Optional[str]) -> Optional[Dict[str, int]]:
    if txt is None:
        return None
    try:
        return parse_assignments(txt)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--orders")


# -----------------------
# infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    """Apply migrations and (re)create the helper views."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrations applied and views created in: {db_path}")


settings_app = typer.Typer(help="Global settings (rates, commission, id format, templates).")
app.add_typer(settings_app, name="settings")


@settings_app.command("set")
def cmd_settings_set(
    items: List[str] = typer.Argument(..., help="key=value pairs, e.g. shipping_rate_fast=500"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Override settings (only the given keys change)."""
    values: Dict[str, str] = {}
    for item in items:
        key, sep, val = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"expected key=value, got {item!r}")
        values[key.strip()] = val
    _run(registry.update_settings, values, user=user, db_path=db_path)
    typer.echo(">> Settings updated.")


@settings_app.command("get")
def cmd_settings_get(
    key: str = typer.Argument(..., help="e.g. shipping_rate_normal | order_id_prefix"),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Print one effective setting."""
    val = _run(registry.get_setting, key, db_path=db_path)
    typer.echo("(None)" if val is None else val)


@settings_app.command("show")
def cmd_settings_show(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    """Show the effective settings (defaults included)."""
    out = _run(registry.show_settings, db_path=db_path)
    _display_table(out, title="Settings")
    console.print(f"[dim]Database: {db_path}[/dim]")


# -----------------------
# reference data
# -----------------------

currency_app = typer.Typer(help="Exchange rates against the base currency.")
app.add_typer(currency_app, name="currency")


@currency_app.command("set")
def cmd_currency_set(
    code: str = typer.Argument(..., help="e.g. USD"),
    rate: str = typer.Argument(..., help="Units of base currency per unit"),
    name: Optional[str] = typer.Option(None),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(registry.set_currency, code, _decimal(rate, "rate"), name=name, user=user, db_path=db_path)
    _display_table(res, title="Currency")


@currency_app.command("list")
def cmd_currency_list(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    _display_table(registry.list_currencies(db_path=db_path), title="Currencies")


client_app = typer.Typer(help="Clients.")
app.add_typer(client_app, name="client")


@client_app.command("add")
def cmd_client_add(
    name: str = typer.Argument(...),
    phone: Optional[str] = typer.Option(None),
    whatsapp: Optional[str] = typer.Option(None, help="Messaging number (defaults to phone)"),
    address: Optional[str] = typer.Option(None),
    gender: Optional[str] = typer.Option(None, help="male | female"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        registry.add_client, name, phone=phone, whatsapp_number=whatsapp,
        address=address, gender=gender, user=user, db_path=db_path,
    )
    _display_table(res, title="Client")


@client_app.command("balance")
def cmd_client_balance(
    client_id: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Outstanding amounts of a client."""
    _display_table(_run(billing.client_balance, client_id, db_path=db_path), title="Client balance")


store_app = typer.Typer(help="Stores.")
app.add_typer(store_app, name="store")


@store_app.command("add")
def cmd_store_add(
    name: str = typer.Argument(...),
    country: Optional[str] = typer.Option(None),
    website: Optional[str] = typer.Option(None),
    days: int = typer.Option(0, help="Estimated delivery days to the hub"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        registry.add_store, name, country=country, website=website,
        estimated_delivery_days=days, user=user, db_path=db_path,
    )
    _display_table(res, title="Store")


company_app = typer.Typer(help="Shipping companies.")
app.add_typer(company_app, name="company")


@company_app.command("add")
def cmd_company_add(
    name: str = typer.Argument(...),
    origin: Optional[str] = typer.Option(None, help="Origin country"),
    destination: Optional[str] = typer.Option(None, help="Destination country"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        registry.add_company, name, origin_country=origin, destination_country=destination,
        user=user, db_path=db_path,
    )
    _display_table(res, title="Shipping company")


# -----------------------
# orders
# -----------------------

order_app = typer.Typer(help="Orders.")
app.add_typer(order_app, name="order")


@order_app.command("create")
def cmd_order_create(
    client_id: str = typer.Option(..., "--client"),
    store_id: str = typer.Option(..., "--store"),
    price: str = typer.Option(..., help="Price in the order currency"),
    currency: Optional[str] = typer.Option(None),
    quantity: int = typer.Option(1),
    commission_type: Optional[str] = typer.Option(None, help="percentage | fixed"),
    commission_rate: Optional[str] = typer.Option(None, help="Percent, for percentage commission"),
    commission_value: Optional[str] = typer.Option(None, help="Amount in base currency, for fixed commission"),
    paid: str = typer.Option("0", help="Amount already paid (base currency)"),
    payment_method: Optional[str] = typer.Option(None),
    shipping_type: Optional[str] = typer.Option(None, help="fast | normal"),
    order_id: Optional[str] = typer.Option(None, "--id", help="Local order id (generated when omitted)"),
    global_order_id: Optional[str] = typer.Option(None, "--store-order"),
    order_date: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    expected: Optional[str] = typer.Option(None, help="Expected arrival YYYY-MM-DD"),
    notes: Optional[str] = typer.Option(None),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Register a new order."""
    res = _run(
        orders.create_order,
        client_id,
        store_id,
        _decimal(price, "--price"),
        currency=currency,
        quantity=quantity,
        commission_type=commission_type,
        commission_rate=_decimal(commission_rate, "--commission-rate"),
        commission_value=_decimal(commission_value, "--commission-value"),
        amount_paid=_decimal(paid, "--paid") or 0.0,
        payment_method=payment_method,
        shipping_type=shipping_type,
        local_order_id=order_id,
        global_order_id=global_order_id,
        order_date=order_date,
        expected_arrival=expected,
        notes=notes,
        user=user,
        db_path=db_path,
    )
    _display_table(res, title="Order created")


@order_app.command("tracking")
def cmd_order_tracking(
    order_ref: str = typer.Argument(...),
    tracking: str = typer.Argument(...),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Record the store tracking number (new -> ordered)."""
    _display_table(_run(orders.assign_tracking, order_ref, tracking, user=user, db_path=db_path), title="Order")


@order_app.command("advance")
def cmd_order_advance(
    order_ref: str = typer.Argument(...),
    origin: Optional[str] = typer.Option(None, help="Hub the order reached"),
    company: Optional[str] = typer.Option(None, help="Receiving shipping company id"),
    tracking: Optional[str] = typer.Option(None),
    global_order_id: Optional[str] = typer.Option(None, "--store-order"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Move an order one manual step forward."""
    res = _run(
        orders.advance_order, order_ref, origin_center=origin, receiving_company_id=company,
        tracking_number=tracking, global_order_id=global_order_id, user=user, db_path=db_path,
    )
    _display_table(res, title="Order")


@order_app.command("revert")
def cmd_order_revert(
    order_ref: str = typer.Argument(...),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Move an order one step back."""
    _display_table(_run(orders.revert_order, order_ref, user=user, db_path=db_path), title="Order")


@order_app.command("cancel")
def cmd_order_cancel(
    order_ref: str = typer.Argument(...),
    reason: str = typer.Option(..., help="Why the order is cancelled"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(_run(orders.cancel_order, order_ref, reason, user=user, db_path=db_path), title="Order cancelled")


@order_app.command("split")
def cmd_order_split(
    order_ref: str = typer.Argument(...),
    quantity: int = typer.Argument(..., help="Units moved to the new order"),
    tracking: Optional[str] = typer.Option(None),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Split units of a new order into a separate order."""
    res = _run(orders.split_order, order_ref, quantity, tracking_number=tracking, user=user, db_path=db_path)
    _display_table([res["source"], res["split"]], title="Split")


@order_app.command("show")
def cmd_order_show(
    order_ref: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(_run(orders.order_detail, order_ref, db_path=db_path), title="Order")


# -----------------------
# shipments
# -----------------------

shipment_app = typer.Typer(help="Consolidated shipments.")
app.add_typer(shipment_app, name="shipment")


@shipment_app.command("create")
def cmd_shipment_create(
    number: str = typer.Argument(..., help="Shipment number"),
    boxes: int = typer.Option(1, help="Number of boxes"),
    shipping_type: Optional[str] = typer.Option(None, help="fast | normal"),
    country: Optional[str] = typer.Option(None, help="Origin hub"),
    company: Optional[str] = typer.Option(None, help="Shipping company id"),
    departure: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    expected: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    order_list: Optional[str] = typer.Option(None, "--orders", help='"FCD1001:1, FCD1002:2"'),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        shipments.create_shipment, number, boxes, shipping_type=shipping_type, country=country,
        shipping_company_id=company, departure_date=departure, expected_arrival=expected,
        assignments=_assignments(order_list), user=user, db_path=db_path,
    )
    _display_table(res, title="Shipment created")


@shipment_app.command("edit")
def cmd_shipment_edit(
    shipment_ref: str = typer.Argument(...),
    boxes: Optional[int] = typer.Option(None, help="Number of boxes"),
    shipping_type: Optional[str] = typer.Option(None),
    country: Optional[str] = typer.Option(None),
    company: Optional[str] = typer.Option(None),
    departure: Optional[str] = typer.Option(None),
    expected: Optional[str] = typer.Option(None),
    order_list: Optional[str] = typer.Option(None, "--orders", help="Full new selection"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Edit a shipment that has not shipped yet."""
    res = _run(
        shipments.edit_shipment, shipment_ref, number_of_boxes=boxes, shipping_type=shipping_type,
        country=country, shipping_company_id=company, departure_date=departure,
        expected_arrival=expected, assignments=_assignments(order_list), user=user, db_path=db_path,
    )
    _display_table(res, title="Shipment")


@shipment_app.command("eligible")
def cmd_shipment_eligible(
    shipment_ref: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Orders at the hub that match this shipment."""
    _display_table(_run(shipments.eligible_orders, shipment_ref, db_path=db_path), title="Eligible orders")


@shipment_app.command("ship")
def cmd_shipment_ship(
    shipment_ref: str = typer.Argument(...),
    tracking: str = typer.Option(..., help="Carrier tracking number"),
    departure: Optional[str] = typer.Option(None),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        shipments.confirm_ship, shipment_ref, tracking, departure_date=departure, user=user, db_path=db_path,
    )
    _display_table(res, title="Shipment shipped")


@shipment_app.command("box-arrived")
def cmd_shipment_box_arrived(
    shipment_ref: str = typer.Argument(...),
    box_number: int = typer.Argument(...),
    date: Optional[str] = typer.Option(None, help="Arrival date"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        shipments.confirm_box_arrival, shipment_ref, box_number, arrival_date=date, user=user, db_path=db_path,
    )
    _display_table(res, title="Box arrival")


@shipment_app.command("receive")
def cmd_shipment_receive(
    shipment_ref: str = typer.Argument(...),
    weight: Optional[str] = typer.Option(None, help="Total weight (kg)"),
    cost: Optional[str] = typer.Option(None, help="Total shipping cost"),
    force: bool = typer.Option(False, "--force", help="Close even with orders not completed"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        shipments.confirm_received, shipment_ref, total_weight=_decimal(weight, "--weight"),
        total_shipping_cost=_decimal(cost, "--cost"), force=force, user=user, db_path=db_path,
    )
    _display_table(res, title="Shipment received")


@shipment_app.command("reconcile")
def cmd_shipment_reconcile(
    shipment_ref: str = typer.Argument(...),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Recompute the shipment status from its boxes."""
    _display_table(_run(shipments.reconcile_shipment, shipment_ref, user=user, db_path=db_path), title="Shipment")


@shipment_app.command("flag-delayed")
def cmd_shipment_flag_delayed(
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    flagged = _run(shipments.flag_delayed_shipments, user=user, db_path=db_path)
    typer.echo(f">> {len(flagged)} shipment(s) flagged as delayed: {', '.join(flagged) or '-'}")


@shipment_app.command("show")
def cmd_shipment_show(
    shipment_ref: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(_run(shipments.shipment_detail, shipment_ref, db_path=db_path), title="Shipment")


# -----------------------
# storage
# -----------------------

drawer_app = typer.Typer(help="Storage drawers.")
app.add_typer(drawer_app, name="drawer")


@drawer_app.command("add")
def cmd_drawer_add(
    name: str = typer.Argument(...),
    rows: Optional[int] = typer.Option(None),
    columns: Optional[int] = typer.Option(None),
    capacity: Optional[int] = typer.Option(None),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(storage.create_drawer, name, rows=rows, columns=columns, capacity=capacity, user=user, db_path=db_path)
    _display_table(res, title="Drawer")


@drawer_app.command("remove")
def cmd_drawer_remove(
    name: str = typer.Argument(...),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _run(storage.delete_drawer, name, user=user, db_path=db_path)
    typer.echo(f">> Drawer {name} removed.")


@drawer_app.command("list")
def cmd_drawer_list(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    """Drawers with their fill and slot contents."""
    layout = storage.drawer_layout(db_path=db_path)
    rows = [
        {
            "drawer": d["drawer"],
            "grid": d["grid"],
            "capacity": d["capacity"],
            "orders": d["orders"],
            "fill": "" if d["fill"] is None else f"{d['fill']}%",
            "slots": ", ".join(f"{addr}: {'/'.join(s['orders'])}" for addr, s in d["slots"].items()),
        }
        for d in layout
    ]
    _display_table(rows, title="Drawers")


storage_app = typer.Typer(help="Storing orders that reached the office.")
app.add_typer(storage_app, name="storage")


@storage_app.command("suggest")
def cmd_storage_suggest(
    order_ref: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(storage.suggest_storage, order_ref, db_path=db_path)
    if res.get("location") is None:
        console.print(Panel(f"No drawer slot available, use {res.get('fallback')}", border_style="yellow"))
    _display_table(res, title="Storage suggestion")


@storage_app.command("confirm")
def cmd_storage_confirm(
    order_ref: str = typer.Argument(...),
    weight: str = typer.Option(..., help="Weight in kg (2,5 or 2.5)"),
    location: str = typer.Option(..., help="Slot address such as B-03, or the floor location"),
    shipping_type: Optional[str] = typer.Option(None, help="Override: fast | normal"),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    res = _run(
        storage.confirm_storage, order_ref, _decimal(weight, "--weight"), location,
        shipping_type=shipping_type, user=user, db_path=db_path,
    )
    _display_table(res, title="Stored")


# -----------------------
# delivery, messages, labels
# -----------------------

@app.command("deliver")
def cmd_deliver(
    client_id: str = typer.Argument(...),
    order_refs: List[str] = typer.Argument(..., help="Stored orders handed over"),
    note: Optional[str] = typer.Option(None),
    user: str = USER_OPT,
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Deliver stored orders to their client."""
    res = _run(delivery.confirm_delivery, client_id, order_refs, note=note, user=user, db_path=db_path)
    _display_table(res, title="Delivery")


@app.command("deliverable")
def cmd_deliverable(
    client_id: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(_run(delivery.deliverable_orders, client_id, db_path=db_path), title="Ready for delivery")


@app.command("notify")
def cmd_notify(
    order_ref: str = typer.Argument(...),
    lang: Optional[str] = typer.Option(None, help="ar | en | fr"),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    """Print the arrival message for an order."""
    res = _run(notifications.arrival_notification, order_ref, language=lang, db_path=db_path)
    if not res["complete"]:
        console.print(Panel(escape("; ".join(res["issues"])), title="INCOMPLETE_TOTALS", border_style="red"))
        _display_table(res["values"], title="Values")
        raise typer.Exit(1)
    console.print(Panel(escape(res["text"]), title=f"To {res['phone'] or 'N/A'} ({res['language']})"))


@app.command("label")
def cmd_label(
    order_ref: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(_run(notifications.label_data, order_ref, db_path=db_path), title="Label")


# -----------------------
# reports
# -----------------------

rel_app = typer.Typer(help="Reports")
app.add_typer(rel_app, name="rel")


@rel_app.command("billing")
def rel_billing(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    """Billing per order and collection totals."""
    res = billing.billing_report(db_path=db_path)
    _display_table(res["orders"], title="Billing")
    _display_table(res["stats"], title="Totals")


@rel_app.command("late")
def rel_late(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    """Orders past their expected arrival date."""
    _display_table(reports.late_orders(db_path=db_path), title="Late orders")


@rel_app.command("storage")
def rel_storage(db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path")):
    _display_table(reports.storage_occupancy(db_path=db_path), title="Storage occupancy")


@rel_app.command("shipments")
def rel_shipments(
    status: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(reports.shipments_overview(status=status, db_path=db_path), title="Shipments")


@rel_app.command("orders")
def rel_orders(
    status: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(reports.orders_overview(status=status, db_path=db_path), title="Orders")


@rel_app.command("audit")
def rel_audit(
    limit: int = typer.Option(50, help="Most recent entries"),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite path"),
):
    _display_table(reports.audit_trail(limit=limit, db_path=db_path), title="Audit log")


def main():
    app()


if __name__ == "__main__":
    main()
