import pytest

from reship.config import DEFAULTS
from reship.domain import storage as slots
from reship.domain.errors import LifecycleError, StorageError, ValidationError
from reship.domain.models import AppSettings, Order, OrderStatus, StorageDrawer
from reship.usecases import orders, storage

SETTINGS = AppSettings.from_defaults(DEFAULTS)


def _drawer(name, capacity=10, rows=None, columns=None):
    return StorageDrawer(id=f"d-{name}", name=name, capacity=capacity, rows=rows, columns=columns)


def _stored(oid, location, client="c1", shipment=None):
    return Order(id=oid, local_order_id=oid.upper(), client_id=client, store_id="s1",
                 status=OrderStatus.STORED, storage_location=location, shipment_id=shipment)


def _incoming(client="c1", shipment=None):
    return Order(id="new", local_order_id="FCD2000", client_id=client, store_id="s1",
                 status=OrderStatus.ARRIVED_AT_OFFICE, shipment_id=shipment)


# -----------------------
# capacity model
# -----------------------

def test_slot_address_format():
    assert slots.slot_address("B", 3) == "B-03"
    assert slots.slot_address("A", 12) == "A-12"
    assert slots.parse_slot_address("B-03") == ("B", 3)
    assert slots.parse_slot_address("Floor") is None


def test_drawer_grid_falls_back_to_default_columns():
    assert slots.drawer_grid(_drawer("A", capacity=12), SETTINGS) == (3, 5)
    assert slots.drawer_grid(_drawer("A", capacity=8, rows=2, columns=4), SETTINGS) == (2, 4)
    assert slots.slot_position(_drawer("A", capacity=10), 7, SETTINGS) == (2, 2)


def test_location_validation():
    drawers = [_drawer("A", capacity=10)]
    assert slots.is_valid_location("A-10", drawers, SETTINGS)
    assert slots.is_valid_location("Floor", drawers, SETTINGS)
    assert not slots.is_valid_location("A-11", drawers, SETTINGS)
    assert not slots.is_valid_location("A-00", drawers, SETTINGS)
    assert not slots.is_valid_location("Z-01", drawers, SETTINGS)
    assert not slots.is_valid_location("shelf", drawers, SETTINGS)


def test_occupancy_is_derived_from_orders():
    orders_ = [_stored("o1", "A-01"), _stored("o2", "A-01"), _stored("o3", "B-02")]
    orders_.append(Order(id="o4", local_order_id="O4", client_id="c1", store_id="s1",
                         status=OrderStatus.COMPLETED))
    assert slots.slot_contents(orders_) == {"A-01": {"o1", "o2"}, "B-02": {"o3"}}
    assert len(slots.orders_in_drawer(_drawer("A"), orders_)) == 2


# -----------------------
# scoring
# -----------------------

def test_same_client_bonus_picks_drawer_and_next_free_slot():
    drawers = [_drawer("A"), _drawer("B")]
    existing = [_stored("o1", "B-01", client="c1"), _stored("o2", "B-02", client="c9")]
    suggestion = slots.suggest_location(_incoming(client="c1"), existing, drawers, SETTINGS)
    assert suggestion.drawer == "B"
    assert suggestion.location == "B-03"
    assert suggestion.score == slots.SCORE_SAME_CLIENT + slots.SCORE_GOOD_SPACE
    assert suggestion.reasons == ["same client", "good space"]


def test_same_client_scores_twenty_five_on_its_own():
    drawers = [_drawer("A"), _drawer("B")]
    existing = [_stored("o1", "B-01", client="c1")]
    suggestion = slots.suggest_location(_incoming(client="c1"), existing, drawers, SETTINGS)
    assert (suggestion.location, suggestion.score) == ("B-02", 25)


def test_same_shipment_outranks_same_client():
    drawers = [_drawer("A"), _drawer("B")]
    existing = [_stored("o1", "A-01", client="c1"), _stored("o2", "B-01", client="c9", shipment="sh1")]
    suggestion = slots.suggest_location(_incoming(client="c1", shipment="sh1"), existing, drawers, SETTINGS)
    assert suggestion.drawer == "B"
    assert suggestion.score == 40


def test_tie_goes_to_first_drawer_name():
    drawers = [_drawer("C"), _drawer("A"), _drawer("B")]
    suggestion = slots.suggest_location(_incoming(), [], drawers, SETTINGS)
    assert suggestion.location == "A-01"
    assert suggestion.score == 0


def test_full_drawer_is_never_suggested():
    drawers = [_drawer("A", capacity=2), _drawer("B", capacity=2)]
    existing = [_stored("o1", "A-01", client="c1"), _stored("o2", "A-02", client="c1")]
    suggestion = slots.suggest_location(_incoming(client="c1"), existing, drawers, SETTINGS)
    assert suggestion.drawer == "B"
    assert suggestion.location == "B-01"


def test_no_eligible_drawer_falls_back_to_floor():
    drawers = [_drawer("A", capacity=1)]
    suggestion = slots.suggest_location(_incoming(), [_stored("o1", "A-01")], drawers, SETTINGS)
    assert suggestion.location is None
    assert suggestion.fallback == "Floor"
    assert slots.suggest_location(_incoming(), [], [], SETTINGS).fallback == "Floor"


def test_rank_orders_by_score_then_name():
    drawers = [_drawer("A"), _drawer("B"), _drawer("C")]
    existing = [_stored("o1", "C-01", client="c1")]
    ranking = slots.rank_drawers(_incoming(client="c1"), existing, drawers, SETTINGS)
    assert [r.drawer.name for r in ranking] == ["C", "A", "B"]


# -----------------------
# use cases
# -----------------------

def test_create_drawer_validation(db_path):
    res = storage.create_drawer("A", capacity=10, db_path=db_path)
    assert res == {"name": "A", "capacity": 10, "rows": 2, "columns": 5}
    assert storage.create_drawer("B", rows=2, columns=3, db_path=db_path)["capacity"] == 6

    with pytest.raises(ValidationError) as exc:
        storage.create_drawer("A", capacity=5, db_path=db_path)
    assert exc.value.code == "DUPLICATE_DRAWER"
    with pytest.raises(ValidationError) as exc:
        storage.create_drawer("X-1", db_path=db_path)
    assert exc.value.code == "INVALID_DRAWER"
    with pytest.raises(ValidationError) as exc:
        storage.create_drawer("C", rows=2, columns=5, capacity=8, db_path=db_path)
    assert exc.value.code == "INVALID_DRAWER"
    with pytest.raises(ValidationError):
        storage.create_drawer("Floor", db_path=db_path)


def test_create_drawer_derives_missing_dimension(db_path):
    assert storage.create_drawer("A", rows=2, capacity=8, db_path=db_path)["columns"] == 4
    assert storage.create_drawer("B", columns=3, capacity=9, db_path=db_path)["rows"] == 3
    assert storage.create_drawer("C", capacity=15, db_path=db_path)["rows"] == 3

    grids = {d["drawer"]: (d["grid"], d["capacity"]) for d in storage.drawer_layout(db_path=db_path)}
    assert grids == {"A": ("2x4", 8), "B": ("3x3", 9), "C": ("3x5", 15)}


@pytest.mark.parametrize("dims", [
    {"rows": 2, "capacity": 7},
    {"columns": 5, "capacity": 7},
    {"capacity": 7},
    {"capacity": 3},
])
def test_create_drawer_rejects_capacity_off_the_grid(db_path, dims):
    with pytest.raises(ValidationError) as exc:
        storage.create_drawer("B", db_path=db_path, **dims)
    assert exc.value.code == "INVALID_DRAWER"
    assert storage.drawer_layout(db_path=db_path) == []


def test_suggest_and_confirm_storage(db_path, hub_order, office_orders):
    storage.create_drawer("A", capacity=10, db_path=db_path)
    storage.create_drawer("B", capacity=10, db_path=db_path)
    first, second = hub_order(), hub_order()
    office_orders(first, second)

    suggestion = storage.suggest_storage(first, db_path=db_path)
    assert suggestion["location"] == "A-01"

    res = storage.confirm_storage(first, 2, "B-01", db_path=db_path)
    assert res["status"] == "stored"
    assert res["storage_location"] == "B-01"
    assert res["shipping_cost"] == 560
    assert res["financials"]["total_due"] == 4400 + 560

    # same client and same shipment now point at drawer B
    suggestion = storage.suggest_storage(second, db_path=db_path)
    assert suggestion["drawer"] == "B"
    assert suggestion["location"] == "B-02"
    assert suggestion["score"] == 65


def test_confirm_storage_rejections(db_path, hub_order, office_orders):
    storage.create_drawer("A", capacity=10, db_path=db_path)
    ref = hub_order()
    office_orders(ref)

    with pytest.raises(ValidationError) as exc:
        storage.confirm_storage(ref, 0, "A-01", db_path=db_path)
    assert exc.value.code == "INVALID_WEIGHT"
    with pytest.raises(ValidationError) as exc:
        storage.confirm_storage(ref, 1.5, "", db_path=db_path)
    assert exc.value.code == "LOCATION_REQUIRED"
    with pytest.raises(StorageError) as exc:
        storage.confirm_storage(ref, 1.5, "A-11", db_path=db_path)
    assert exc.value.code == "INVALID_LOCATION"

    storage.confirm_storage(ref, 1.5, "A-01", db_path=db_path)
    with pytest.raises(LifecycleError) as exc:
        storage.confirm_storage(ref, 3, "A-02", db_path=db_path)
    assert exc.value.code == "ORDER_NOT_AWAITING_STORAGE"
    order = orders.get_order(ref, db_path=db_path)
    assert (order.storage_location, order.weight) == ("A-01", 1.5)


def test_floor_storage_and_fast_override(db_path, hub_order, office_orders):
    ref = hub_order()
    office_orders(ref)
    res = storage.confirm_storage(ref, 1, "Floor", shipping_type="fast", db_path=db_path)
    assert res["storage_location"] == "Floor"
    assert res["shipping_cost"] == 450


def test_suggest_requires_order_at_office(db_path, hub_order):
    with pytest.raises(LifecycleError):
        storage.suggest_storage(hub_order(), db_path=db_path)


def test_delete_drawer_refused_while_occupied(db_path, hub_order, office_orders):
    storage.create_drawer("A", capacity=5, db_path=db_path)
    ref = hub_order()
    office_orders(ref)
    storage.confirm_storage(ref, 1, "A-03", db_path=db_path)

    with pytest.raises(StorageError) as exc:
        storage.delete_drawer("A", db_path=db_path)
    assert exc.value.code == "DRAWER_NOT_EMPTY"

    layout = storage.drawer_layout(db_path=db_path)
    assert layout[0]["orders"] == 1
    assert layout[0]["slots"]["A-03"]["orders"] == [ref]
    assert layout[0]["slots"]["A-03"]["position"] == (1, 3)

    orders.revert_order(ref, db_path=db_path)
    assert storage.delete_drawer("A", db_path=db_path)["deleted"] is True
