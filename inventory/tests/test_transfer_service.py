import pytest
from django.utils import timezone

from inventory.models import InventoryItem, InventoryTransfer, InventoryVariation, StoreLocation
from inventory.services import (
    BusinessRuleError,
    InventoryTransferService,
    NotFoundError,
    TransferStatusService,
    ValidationError,
)

pytestmark = pytest.mark.django_db


def create(item, variation, location_a, location_b, **overrides):
    params = dict(
        inventory_item_id=item.id,
        variation_id=variation.id,
        quantity=3,
        from_location_id=location_a.id,
        to_location_id=location_b.id,
    )
    params.update(overrides)
    return InventoryTransferService.create(**params)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def test_create_starts_pending_and_numbers_sequentially(staff, item, variation, location_a, location_b):
    first = create(item, variation, location_a, location_b, requested_by_id=staff.id, notes="For the weekend")
    second = create(item, variation, location_a, location_b)

    today = timezone.now().strftime("%Y%m%d")
    assert first["transfer_number"] == f"TRF-{today}-0001"
    assert second["transfer_number"] == f"TRF-{today}-0002"

    transfer = first["transfer"]
    assert transfer["status"] == "PENDING"
    assert transfer["completed_at"] is None
    assert transfer["requested_by_id"] == staff.id
    assert transfer["has_adjustments"] is False


def test_create_never_touches_stock(item, variation, location_a, location_b, stock):
    stock(variation, location_a, 1)

    # more than is on hand: allowed until the transfer is completed
    result = create(item, variation, location_a, location_b, quantity=50)

    assert result["transfer"]["from_location"]["stock"] == 1
    assert result["transfer"]["to_location"]["stock"] == 0


@pytest.mark.parametrize("quantity", [0, -2, "2.5", None, True, "²", " "])
def test_create_rejects_non_positive_quantity(item, variation, location_a, location_b, quantity):
    with pytest.raises(ValidationError) as exc_info:
        create(item, variation, location_a, location_b, quantity=quantity)
    assert exc_info.value.details["field"] == "quantity"


def test_create_rejects_same_location(item, variation, location_a):
    with pytest.raises(ValidationError):
        create(item, variation, location_a, location_a)


def test_create_rejects_variation_of_another_item(item, location_a, location_b):
    other = InventoryVariation.objects.create(
        item=InventoryItem.objects.create(name="Battery"), name="Standard"
    )
    with pytest.raises(ValidationError):
        create(item, other, location_a, location_b)


def test_create_rejects_inactive_or_unknown_location(item, variation, location_a, location_b):
    StoreLocation.objects.filter(id=location_b.id).update(is_active=False)

    with pytest.raises(ValidationError):
        create(item, variation, location_a, location_b)
    with pytest.raises(NotFoundError):
        InventoryTransferService.create(item.id, variation.id, 1, location_a.id, 999999)


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

def test_update_rejects_quantity_and_status(make_transfer):
    transfer = make_transfer()

    with pytest.raises(ValidationError):
        InventoryTransferService.update(transfer.id, quantity=99)
    with pytest.raises(ValidationError):
        InventoryTransferService.update(transfer.id, status="COMPLETED")

    transfer.refresh_from_db()
    assert (transfer.quantity, transfer.status) == (10, "PENDING")


def test_update_rejects_unknown_fields(make_transfer):
    with pytest.raises(ValidationError):
        InventoryTransferService.update(make_transfer().id, transfer_date="2020-01-01")


def test_update_treats_transfer_id_in_fields_as_unknown(make_transfer):
    transfer = make_transfer()

    with pytest.raises(ValidationError) as exc_info:
        InventoryTransferService.update(transfer.id, transfer_id=transfer.id + 1, notes="x")
    assert exc_info.value.details["field"] == "transfer_id"


def test_update_locations_while_pending(make_transfer, location_a, location_b):
    transfer = make_transfer()

    result = InventoryTransferService.update(
        transfer.id, from_location_id=location_b.id, to_location_id=location_a.id
    )

    assert result["transfer"]["from_location_id"] == location_b.id
    assert result["transfer"]["to_location_id"] == location_a.id


def test_update_cannot_collapse_locations(make_transfer, location_a):
    transfer = make_transfer()
    with pytest.raises(ValidationError):
        InventoryTransferService.update(transfer.id, to_location_id=location_a.id)


def test_locations_locked_after_leaving_pending(staff, make_transfer, location_a, location_b):
    transfer = make_transfer()
    TransferStatusService.transition(transfer.id, "IN_TRANSIT", staff.id)

    with pytest.raises(BusinessRuleError) as exc_info:
        InventoryTransferService.update(transfer.id, from_location_id=location_b.id, to_location_id=location_a.id)
    assert exc_info.value.details["rule"] == "transfer_not_pending"

    # notes stay editable in any status
    result = InventoryTransferService.update(transfer.id, notes="Courier picked up")
    assert result["transfer"]["notes"] == "Courier picked up"


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def test_delete_pending_transfer(make_transfer):
    transfer = make_transfer()

    InventoryTransferService.delete(transfer.id)

    assert not InventoryTransfer.objects.filter(id=transfer.id).exists()


def test_delete_completed_transfer_is_refused(staff, variation, location_a, stock, make_transfer):
    stock(variation, location_a, 10)
    transfer = make_transfer(quantity=4)
    TransferStatusService.transition(transfer.id, "COMPLETED", staff.id)

    with pytest.raises(BusinessRuleError) as exc_info:
        InventoryTransferService.delete(transfer.id)
    assert exc_info.value.details["rule"] == "transfer_completed"


def test_delete_reversed_transfer_keeps_audit_trail(staff, variation, location_a, stock, make_transfer):
    stock(variation, location_a, 10)
    transfer = make_transfer(quantity=4)
    TransferStatusService.transition(transfer.id, "COMPLETED", staff.id)
    TransferStatusService.transition(transfer.id, "CANCELLED", staff.id)

    with pytest.raises(BusinessRuleError) as exc_info:
        InventoryTransferService.delete(transfer.id)
    assert exc_info.value.details["rule"] == "transfer_has_adjustments"
    assert InventoryTransfer.objects.filter(id=transfer.id).exists()


def test_delete_unknown_transfer():
    with pytest.raises(NotFoundError):
        InventoryTransferService.delete(424242)


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

def test_list_filters_by_status_and_location(staff, make_transfer, location_a, location_b):
    outgoing = make_transfer()
    make_transfer(from_location=location_b, to_location=location_a)
    TransferStatusService.transition(outgoing.id, "IN_TRANSIT", staff.id)

    in_transit = InventoryTransferService.list(status="IN_TRANSIT")
    assert [t["id"] for t in in_transit["transfers"]] == [outgoing.id]

    from_b = InventoryTransferService.list(from_location_id=location_b.id)
    assert from_b["pagination"]["total_items"] == 1
    assert {s["value"] for s in from_b["statuses"]} == {"PENDING", "IN_TRANSIT", "COMPLETED", "CANCELLED"}


def test_list_newest_first(make_transfer):
    older = make_transfer()
    newer = make_transfer()

    ids = [t["id"] for t in InventoryTransferService.list()["transfers"]]
    assert ids.index(newer.id) < ids.index(older.id)


def test_list_rejects_unknown_status():
    with pytest.raises(ValidationError):
        InventoryTransferService.list(status="LOST")
