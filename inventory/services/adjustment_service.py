import logging
from typing import Dict, Any, Optional

from inventory.models import InventoryAdjustment, InventoryVariation, InventoryTransfer, StoreLocation
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset, to_int,
    ValidationError, NotFoundError, BusinessRuleError, UnauthorizedError
)
from inventory.services.level_service import StockLedger
from staff.models import Staff
from staff.services.staff_service import StaffService

logger = logging.getLogger(__name__)


class InventoryAdjustmentService(BaseService):
    """Append-only audit log of stock mutations."""

    model = InventoryAdjustment

    @classmethod
    def serialize(cls, adjustment: InventoryAdjustment) -> Dict[str, Any]:
        return {
            "id": adjustment.id,
            "uuid": str(adjustment.uuid),
            "item_id": adjustment.item_id,
            "item_name": adjustment.item.name,
            "variation_id": adjustment.variation_id,
            "variation_name": adjustment.variation.name,
            "location_id": adjustment.location_id,
            "location_name": adjustment.location.name,
            "transfer_id": adjustment.transfer_id,
            "change_amount": adjustment.change_amount,
            "reason": adjustment.reason,
            "stock_before": adjustment.stock_before,
            "stock_after": adjustment.stock_after,
            "adjusted_by": {
                "id": adjustment.adjusted_by_id,
                "name": adjustment.adjusted_by.full_name,
            },
            "approved_by": {
                "id": adjustment.approved_by_id,
                "name": adjustment.approved_by.full_name,
            },
            "approved": adjustment.approved,
            "created_at": adjustment.created_at.isoformat(),
        }

    @classmethod
    def _queryset(cls):
        return cls.model.objects.select_related(
            "item", "variation", "location", "adjusted_by", "approved_by"
        )

    @classmethod
    def record(cls,
               variation: InventoryVariation,
               location_id: int,
               change_amount: int,
               stock_before: int,
               stock_after: int,
               reason: str,
               actor: Staff,
               transfer: Optional[InventoryTransfer] = None) -> InventoryAdjustment:
        return cls.model.objects.create(
            item_id=variation.item_id,
            variation=variation,
            location_id=location_id,
            transfer=transfer,
            change_amount=change_amount,
            reason=reason,
            stock_before=stock_before,
            stock_after=stock_after,
            adjusted_by=actor,
            approved_by=actor,
            approved=True,
        )

    @classmethod
    def list(cls,
             transfer_id: int = None,
             location_id: int = None,
             variation_id: int = None,
             staff_id: int = None,
             page: int = 1,
             per_page: int = 20) -> Dict[str, Any]:
        queryset = cls._queryset()

        if transfer_id:
            queryset = queryset.filter(transfer_id=transfer_id)

        if location_id:
            queryset = queryset.filter(location_id=location_id)

        if variation_id:
            queryset = queryset.filter(variation_id=variation_id)

        if staff_id:
            queryset = queryset.filter(adjusted_by_id=staff_id)

        adjustments, pagination = paginate_queryset(
            queryset.order_by("-created_at", "-id"), page, per_page
        )

        return success_response({
            "adjustments": [cls.serialize(a) for a in adjustments],
            "pagination": pagination
        })

    @classmethod
    def get(cls, adjustment_id: int) -> Dict[str, Any]:
        adjustment = cls._queryset().filter(id=adjustment_id).first()
        if not adjustment:
            raise NotFoundError("Adjustment", adjustment_id)

        return success_response({"adjustment": cls.serialize(adjustment)})

    @classmethod
    def for_transfer(cls, transfer_id: int) -> Dict[str, Any]:
        adjustments = cls._queryset().filter(transfer_id=transfer_id).order_by("created_at", "id")

        return success_response({
            "adjustments": [cls.serialize(a) for a in adjustments],
            "count": len(adjustments),
        })

    @classmethod
    def adjust_stock(cls,
                     variation_id: int,
                     location_id: int,
                     change_amount: Any,
                     reason: str,
                     actor_id: Any) -> Dict[str, Any]:
        """Manual stock correction (intake, shrinkage, recount). Approved immediately."""
        change_amount = to_int(change_amount, "change_amount")
        if change_amount == 0:
            raise ValidationError("Change amount cannot be zero", "change_amount")

        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required for a manual adjustment", "reason")

        try:
            variation = InventoryVariation.objects.select_related("item").get(id=variation_id)
        except (InventoryVariation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Variation", variation_id)

        try:
            location = StoreLocation.objects.get(id=location_id)
        except (StoreLocation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Location", location_id)
        if not location.is_active:
            raise BusinessRuleError(f"Location '{location.name}' is inactive", "location_inactive")

        actor = StaffService.get_active(actor_id)
        if actor is None:
            raise UnauthorizedError(actor_id)

        with StockLedger.unit_of_work("Stock adjustment"):
            level = StockLedger.lock(variation.id, [location.id]).get(location.id)
            if change_amount > 0:
                level, before, after = StockLedger.deposit(variation.id, location.id, change_amount, level)
            else:
                level, before, after = StockLedger.withdraw(variation.id, location.id, -change_amount, level)

            adjustment = cls.record(
                variation=variation,
                location_id=location.id,
                change_amount=change_amount,
                stock_before=before,
                stock_after=after,
                reason=reason,
                actor=actor,
            )

        logger.info(
            "Manual adjustment %s: variation %s at location %s %+d (%s -> %s) by staff %s",
            adjustment.id, variation.id, location.id, change_amount, before, after, actor.id,
        )

        return success_response({
            "adjustment": cls.serialize(adjustment),
        }, f"Stock adjusted: {change_amount:+d}")
