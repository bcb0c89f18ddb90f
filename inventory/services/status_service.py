"""
Transfer status workflow.

A status change only touches stock when it crosses the Completed boundary:

    anything -> COMPLETED     activation: source -quantity, destination +quantity
    COMPLETED -> anything     reversal:   source +quantity, destination -quantity
    anything else             status field only

Each stock movement writes one InventoryAdjustment. The status update, the
stock rows and the adjustments commit together or not at all.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from django.utils import timezone

from inventory.models import InventoryTransfer, InventoryVariation
from inventory.services.adjustment_service import InventoryAdjustmentService
from inventory.services.base_service import (
    ServiceError, ValidationError, NotFoundError, UnauthorizedError,
    InsufficientStockForReversalError,
)
from inventory.services.level_service import StockLedger
from staff.models import Staff
from staff.services.staff_service import StaffService

logger = logging.getLogger(__name__)

Status = InventoryTransfer.Status


class TransitionKind(enum.Enum):
    ACTIVATION = "ACTIVATION"
    REVERSAL = "REVERSAL"
    STATUS_ONLY = "STATUS_ONLY"


class TransitionOutcome(enum.Enum):
    NO_CHANGE = "NO_CHANGE"
    COMPLETED = "COMPLETED"
    REVERSED = "REVERSED"
    STATUS_ONLY = "STATUS_ONLY"


OUTCOME_BY_KIND = {
    TransitionKind.ACTIVATION: TransitionOutcome.COMPLETED,
    TransitionKind.REVERSAL: TransitionOutcome.REVERSED,
    TransitionKind.STATUS_ONLY: TransitionOutcome.STATUS_ONLY,
}


def classify_transition(previous: str, new: str) -> Optional[TransitionKind]:
    """None when nothing changes."""
    if previous == new:
        return None
    if new == Status.COMPLETED:
        return TransitionKind.ACTIVATION
    if previous == Status.COMPLETED:
        return TransitionKind.REVERSAL
    return TransitionKind.STATUS_ONLY


@dataclass(frozen=True)
class StockMovement:
    location_id: int
    change_amount: int
    stock_before: int
    stock_after: int
    adjustment_id: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "location_id": self.location_id,
            "change_amount": self.change_amount,
            "stock_before": self.stock_before,
            "stock_after": self.stock_after,
            "adjustment_id": self.adjustment_id,
        }


@dataclass(frozen=True)
class TransitionResult:
    outcome: TransitionOutcome
    transfer_id: int
    previous_status: str
    new_status: str
    movements: Tuple[StockMovement, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        label = Status(self.new_status).label
        if self.outcome is TransitionOutcome.NO_CHANGE:
            return "No status change detected"
        if self.outcome is TransitionOutcome.COMPLETED:
            return "Transfer completed and stock adjusted"
        if self.outcome is TransitionOutcome.REVERSED:
            return f"Transfer status updated to {label} and stock adjustments reversed"
        return f"Transfer status updated to {label}"

    def to_response(self) -> Dict[str, Any]:
        return {
            "status": "info" if self.outcome is TransitionOutcome.NO_CHANGE else "success",
            "message": self.message,
            "outcome": self.outcome.value,
            "transfer_id": self.transfer_id,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "movements": [m.as_dict() for m in self.movements],
        }

    @staticmethod
    def error_response(error: ServiceError) -> Dict[str, Any]:
        return {
            "status": "error",
            "message": error.message,
            "error_code": error.code,
            "details": error.details,
        }


class TransferStatusService:
    """Moves a transfer between statuses and applies the matching stock movements."""

    @classmethod
    def normalize_status(cls, value: Any) -> str:
        """Accept the stored value ("IN_TRANSIT") or the display label ("In Transit")."""
        if isinstance(value, str):
            candidate = value.strip()
            for stored, label in Status.choices:
                if candidate == stored or candidate.lower() == label.lower():
                    return stored
        valid = [c[0] for c in Status.choices]
        raise ValidationError(f"Invalid status '{value}'. Valid: {valid}", "status")

    @classmethod
    def transition(cls, transfer_id: Any, new_status: Any, actor_id: Any) -> TransitionResult:
        new_status = cls.normalize_status(new_status)

        if not InventoryTransfer.objects.filter(id=cls._transfer_pk(transfer_id)).exists():
            raise NotFoundError("Transfer", transfer_id)

        actor = StaffService.get_active(actor_id)
        if actor is None:
            logger.warning("Transfer %s status change rejected: staff %s is not active", transfer_id, actor_id)
            raise UnauthorizedError(actor_id)

        try:
            with StockLedger.unit_of_work("Transfer status update"):
                result = cls._apply(cls._transfer_pk(transfer_id), new_status, actor)
        except ServiceError as exc:
            logger.warning(
                "Transfer %s -> %s rejected (%s): %s", transfer_id, new_status, exc.code, exc.message
            )
            raise

        if result.outcome is TransitionOutcome.NO_CHANGE:
            logger.info("Transfer %s already %s, nothing to do", result.transfer_id, new_status)
        else:
            logger.info(
                "Transfer %s %s -> %s (%s) by staff %s, movements=%s",
                result.transfer_id, result.previous_status, result.new_status,
                result.outcome.value, actor.id,
                [(m.location_id, m.change_amount) for m in result.movements],
            )
        return result

    @staticmethod
    def _transfer_pk(transfer_id: Any) -> int:
        if isinstance(transfer_id, bool):
            raise NotFoundError("Transfer", transfer_id)
        try:
            return int(transfer_id)
        except (TypeError, ValueError):
            raise NotFoundError("Transfer", transfer_id)

    @classmethod
    def _apply(cls, transfer_id: int, new_status: str, actor: Staff) -> TransitionResult:
        # Serializes concurrent requests for the same transfer.
        try:
            transfer = InventoryTransfer.objects.select_for_update().get(id=transfer_id)
        except InventoryTransfer.DoesNotExist:
            raise NotFoundError("Transfer", transfer_id)

        previous_status = transfer.status
        kind = classify_transition(previous_status, new_status)
        if kind is None:
            return TransitionResult(TransitionOutcome.NO_CHANGE, transfer.id, previous_status, new_status)

        transfer.status = new_status
        if kind is TransitionKind.ACTIVATION:
            transfer.completed_at = timezone.now()
        elif kind is TransitionKind.REVERSAL:
            transfer.completed_at = None
        transfer.save(update_fields=["status", "completed_at", "updated_at"])

        movements = ()
        if kind is TransitionKind.ACTIVATION:
            movements = cls._activate(transfer, actor)
        elif kind is TransitionKind.REVERSAL:
            movements = cls._reverse(transfer, actor)

        return TransitionResult(OUTCOME_BY_KIND[kind], transfer.id, previous_status, new_status, movements)

    @classmethod
    def _activate(cls, transfer: InventoryTransfer, actor: Staff) -> Tuple[StockMovement, ...]:
        variation = InventoryVariation.objects.select_related("item").get(id=transfer.variation_id)
        source, destination, quantity = transfer.from_location_id, transfer.to_location_id, transfer.quantity
        levels = StockLedger.lock(variation.id, [source, destination])

        _, before, after = StockLedger.withdraw(variation.id, source, quantity, levels.get(source))
        out_movement = cls._record(
            transfer, variation, actor, source, -quantity, before, after,
            f"Inventory transferred out to Location #{destination} (Transfer #{transfer.id})",
        )

        _, before, after = StockLedger.deposit(variation.id, destination, quantity, levels.get(destination))
        in_movement = cls._record(
            transfer, variation, actor, destination, quantity, before, after,
            f"Inventory transferred in from Location #{source} (Transfer #{transfer.id})",
        )

        return out_movement, in_movement

    @classmethod
    def _reverse(cls, transfer: InventoryTransfer, actor: Staff) -> Tuple[StockMovement, ...]:
        variation = InventoryVariation.objects.select_related("item").get(id=transfer.variation_id)
        source, destination, quantity = transfer.from_location_id, transfer.to_location_id, transfer.quantity
        levels = StockLedger.lock(variation.id, [source, destination])

        _, before, after = StockLedger.deposit(variation.id, source, quantity, levels.get(source))
        return_movement = cls._record(
            transfer, variation, actor, source, quantity, before, after,
            f"Inventory transfer reversal to Location #{destination} (Transfer #{transfer.id})",
        )

        _, before, after = StockLedger.withdraw(
            variation.id, destination, quantity, levels.get(destination),
            error_class=InsufficientStockForReversalError,
        )
        removal_movement = cls._record(
            transfer, variation, actor, destination, -quantity, before, after,
            f"Inventory transfer reversal from Location #{source} (Transfer #{transfer.id})",
        )

        return return_movement, removal_movement

    @staticmethod
    def _record(transfer, variation, actor, location_id, change_amount, before, after, reason) -> StockMovement:
        adjustment = InventoryAdjustmentService.record(
            variation=variation,
            location_id=location_id,
            change_amount=change_amount,
            stock_before=before,
            stock_after=after,
            reason=reason,
            actor=actor,
            transfer=transfer,
        )
        return StockMovement(location_id, change_amount, before, after, adjustment.id)
