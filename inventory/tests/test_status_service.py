import pytest
from django.db import OperationalError

from inventory.models import InventoryAdjustment, InventoryTransfer, StockLevel
from inventory.services import (
    InsufficientStockError,
    InsufficientStockForReversalError,
    NotFoundError,
    StockLevelService,
    TransactionFailureError,
    TransferStatusService,
    TransitionKind,
    TransitionOutcome,
    UnauthorizedError,
    ValidationError,
    classify_transition,
)

pytestmark = pytest.mark.django_db

Status = InventoryTransfer.Status


def qty(variation, location):
    return StockLevelService.get_quantity(variation.id, location.id)


def snapshot(variation, *locations):
    return (
        tuple(qty(variation, loc) for loc in locations),
        InventoryAdjustment.objects.count(),
    )


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("previous,new,expected", [
    (Status.PENDING, Status.PENDING, None),
    (Status.COMPLETED, Status.COMPLETED, None),
    (Status.PENDING, Status.COMPLETED, TransitionKind.ACTIVATION),
    (Status.IN_TRANSIT, Status.COMPLETED, TransitionKind.ACTIVATION),
    (Status.CANCELLED, Status.COMPLETED, TransitionKind.ACTIVATION),
    (Status.COMPLETED, Status.PENDING, TransitionKind.REVERSAL),
    (Status.COMPLETED, Status.CANCELLED, TransitionKind.REVERSAL),
    (Status.PENDING, Status.IN_TRANSIT, TransitionKind.STATUS_ONLY),
    (Status.IN_TRANSIT, Status.CANCELLED, TransitionKind.STATUS_ONLY),
])
def test_classify_transition(previous, new, expected):
    assert classify_transition(previous, new) is expected


@pytest.mark.parametrize("value,expected", [
    ("COMPLETED", Status.COMPLETED),
    ("Completed", Status.COMPLETED),
    ("In Transit", Status.IN_TRANSIT),
    (" pending ", Status.PENDING),
])
def test_normalize_status_accepts_values_and_labels(value, expected):
    assert TransferStatusService.normalize_status(value) == expected


@pytest.mark.parametrize("value", ["Shipped", "", None, 3])
def test_normalize_status_rejects_unknown(value):
    with pytest.raises(ValidationError):
        TransferStatusService.normalize_status(value)


# ---------------------------------------------------------------------------
# Activation and reversal
# ---------------------------------------------------------------------------

def test_activation_then_reversal_round_trip(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)
    seeded_adjustments = InventoryAdjustment.objects.count()

    result = TransferStatusService.transition(transfer.id, "Completed", staff.id)

    assert result.outcome is TransitionOutcome.COMPLETED
    assert result.previous_status == Status.PENDING
    assert result.new_status == Status.COMPLETED
    assert qty(variation, location_a) == 5
    assert qty(variation, location_b) == 10

    out_move, in_move = result.movements
    assert (out_move.location_id, out_move.change_amount, out_move.stock_before, out_move.stock_after) == (
        location_a.id, -10, 15, 5
    )
    # Destination had no row before the transfer.
    assert (in_move.location_id, in_move.change_amount, in_move.stock_before, in_move.stock_after) == (
        location_b.id, 10, 0, 10
    )

    transfer.refresh_from_db()
    assert transfer.status == Status.COMPLETED
    assert transfer.completed_at is not None

    result = TransferStatusService.transition(transfer.id, Status.PENDING, staff.id)

    assert result.outcome is TransitionOutcome.REVERSED
    assert qty(variation, location_a) == 15
    assert qty(variation, location_b) == 0
    assert [m.change_amount for m in result.movements] == [10, -10]

    transfer.refresh_from_db()
    assert transfer.status == Status.PENDING
    assert transfer.completed_at is None

    adjustments = InventoryAdjustment.objects.filter(transfer=transfer).order_by("id")
    assert InventoryAdjustment.objects.count() == seeded_adjustments + 4
    assert [a.change_amount for a in adjustments] == [-10, 10, 10, -10]
    for adjustment in adjustments:
        assert adjustment.stock_after - adjustment.stock_before == adjustment.change_amount
        assert adjustment.adjusted_by_id == staff.id
        assert adjustment.approved_by_id == staff.id
        assert adjustment.approved is True


def test_adjustment_reasons_reference_transfer(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 10)
    transfer = make_transfer(quantity=4)

    TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)
    TransferStatusService.transition(transfer.id, Status.CANCELLED, staff.id)

    reasons = list(
        InventoryAdjustment.objects.filter(transfer=transfer).order_by("id").values_list("reason", flat=True)
    )
    assert reasons == [
        f"Inventory transferred out to Location #{location_b.id} (Transfer #{transfer.id})",
        f"Inventory transferred in from Location #{location_a.id} (Transfer #{transfer.id})",
        f"Inventory transfer reversal to Location #{location_b.id} (Transfer #{transfer.id})",
        f"Inventory transfer reversal from Location #{location_a.id} (Transfer #{transfer.id})",
    ]


def test_activation_adds_to_existing_destination_row(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 8)
    stock(variation, location_b, 3)
    transfer = make_transfer(quantity=8)

    result = TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)

    assert qty(variation, location_a) == 0
    assert qty(variation, location_b) == 11
    assert result.movements[1].stock_before == 3
    assert StockLevel.objects.filter(variation=variation, location=location_b).count() == 1


def test_same_status_is_a_no_op(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)
    TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)
    before = snapshot(variation, location_a, location_b)

    result = TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)

    assert result.outcome is TransitionOutcome.NO_CHANGE
    assert result.movements == ()
    assert snapshot(variation, location_a, location_b) == before
    assert result.to_response()["status"] == "info"


def test_status_only_transitions_touch_no_stock(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)
    before = snapshot(variation, location_a, location_b)

    result = TransferStatusService.transition(transfer.id, Status.IN_TRANSIT, staff.id)
    assert result.outcome is TransitionOutcome.STATUS_ONLY
    assert result.movements == ()

    result = TransferStatusService.transition(transfer.id, Status.CANCELLED, staff.id)
    assert result.outcome is TransitionOutcome.STATUS_ONLY

    transfer.refresh_from_db()
    assert transfer.status == Status.CANCELLED
    assert snapshot(variation, location_a, location_b) == before


# ---------------------------------------------------------------------------
# Failures leave everything as it was
# ---------------------------------------------------------------------------

def test_insufficient_source_stock_rolls_back(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 5)
    transfer = make_transfer(quantity=10)
    before = snapshot(variation, location_a, location_b)

    with pytest.raises(InsufficientStockError) as exc_info:
        TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)

    assert exc_info.value.code == "INSUFFICIENT_STOCK"
    assert exc_info.value.details["required"] == 10
    assert exc_info.value.details["available"] == 5
    transfer.refresh_from_db()
    assert transfer.status == Status.PENDING
    assert transfer.completed_at is None
    assert snapshot(variation, location_a, location_b) == before


def test_missing_source_row_is_insufficient_stock(staff, variation, location_a, location_b, make_transfer):
    transfer = make_transfer(quantity=1)

    with pytest.raises(InsufficientStockError) as exc_info:
        TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)

    assert exc_info.value.details["available"] == 0
    assert not StockLevel.objects.exists()
    transfer.refresh_from_db()
    assert transfer.status == Status.PENDING


def test_reversal_fails_when_destination_stock_was_consumed(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)
    TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)
    stock(variation, location_b, -6)
    before = snapshot(variation, location_a, location_b)

    with pytest.raises(InsufficientStockForReversalError) as exc_info:
        TransferStatusService.transition(transfer.id, Status.PENDING, staff.id)

    assert exc_info.value.code == "INSUFFICIENT_STOCK_FOR_REVERSAL"
    assert isinstance(exc_info.value, InsufficientStockError)
    transfer.refresh_from_db()
    assert transfer.status == Status.COMPLETED
    assert snapshot(variation, location_a, location_b) == before


def test_second_transfer_from_same_location_cannot_overdraw(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 10)
    first = make_transfer(quantity=7)
    second = make_transfer(quantity=7)

    TransferStatusService.transition(first.id, Status.COMPLETED, staff.id)
    with pytest.raises(InsufficientStockError):
        TransferStatusService.transition(second.id, Status.COMPLETED, staff.id)

    assert qty(variation, location_a) == 3
    assert qty(variation, location_b) == 7
    second.refresh_from_db()
    assert second.status == Status.PENDING


def test_database_failure_becomes_transaction_failure(monkeypatch, staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)
    before = snapshot(variation, location_a, location_b)

    def fail_record(**kwargs):
        raise OperationalError("deadlock detected")

    monkeypatch.setattr(
        "inventory.services.status_service.InventoryAdjustmentService.record", fail_record
    )

    with pytest.raises(TransactionFailureError) as exc_info:
        TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id)

    assert exc_info.value.retryable is True
    transfer.refresh_from_db()
    assert transfer.status == Status.PENDING
    assert snapshot(variation, location_a, location_b) == before


# ---------------------------------------------------------------------------
# Validation happens before any mutation
# ---------------------------------------------------------------------------

def test_unknown_transfer_is_not_found(staff):
    with pytest.raises(NotFoundError):
        TransferStatusService.transition(999999, Status.COMPLETED, staff.id)


def test_boolean_transfer_id_is_not_treated_as_an_id(staff, make_transfer):
    transfer = make_transfer()

    with pytest.raises(NotFoundError):
        TransferStatusService.transition(True, Status.IN_TRANSIT, staff.id)

    transfer.refresh_from_db()
    assert transfer.status == Status.PENDING


def test_invalid_status_is_checked_before_transfer_lookup(staff):
    with pytest.raises(ValidationError):
        TransferStatusService.transition(999999, "Shipped", staff.id)


@pytest.mark.parametrize("actor", ["suspended", "missing", "none"])
def test_actor_must_be_active_staff(actor, suspended_staff, variation, location_a, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)
    actor_id = {"suspended": suspended_staff.id, "missing": 424242, "none": None}[actor]

    with pytest.raises(UnauthorizedError):
        TransferStatusService.transition(transfer.id, Status.COMPLETED, actor_id)

    transfer.refresh_from_db()
    assert transfer.status == Status.PENDING
    assert qty(variation, location_a) == 15


def test_not_found_is_reported_before_unauthorized():
    with pytest.raises(NotFoundError):
        TransferStatusService.transition(999999, Status.COMPLETED, None)


# ---------------------------------------------------------------------------
# Result rendering
# ---------------------------------------------------------------------------

def test_result_response_shape(staff, variation, location_a, location_b, stock, make_transfer):
    stock(variation, location_a, 15)
    transfer = make_transfer(quantity=10)

    response = TransferStatusService.transition(transfer.id, Status.COMPLETED, staff.id).to_response()

    assert response["status"] == "success"
    assert response["message"] == "Transfer completed and stock adjusted"
    assert response["outcome"] == "COMPLETED"
    assert response["transfer_id"] == transfer.id
    assert [m["change_amount"] for m in response["movements"]] == [-10, 10]

    response = TransferStatusService.transition(transfer.id, "In Transit", staff.id).to_response()
    assert response["message"] == "Transfer status updated to In Transit and stock adjustments reversed"
