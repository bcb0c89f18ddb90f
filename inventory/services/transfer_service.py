"""
Inventory Transfer Service - transfer records between store locations.

Status changes are not made here; they go through
inventory.services.status_service.TransferStatusService.
"""
import logging
from typing import Dict, Any
from datetime import date

from django.conf import settings
from django.db import IntegrityError, transaction

from inventory.models import (
    InventoryTransfer, InventoryItem, InventoryVariation, StoreLocation, StockLevel
)
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset, to_int, generate_number,
    ValidationError, NotFoundError, BusinessRuleError
)

logger = logging.getLogger(__name__)


class InventoryTransferService(BaseService):
    """Transfer record store"""

    model = InventoryTransfer

    EDITABLE_WHILE_PENDING = ("inventory_item_id", "variation_id", "from_location_id", "to_location_id")
    IMMUTABLE_FIELDS = ("quantity", "status")

    # ==================== SERIALIZATION ====================

    @classmethod
    def serialize(cls, transfer: InventoryTransfer) -> Dict[str, Any]:
        """Full transfer with location, item and variation display data"""
        stock_by_location = dict(
            StockLevel.objects.filter(
                variation_id=transfer.variation_id,
                location_id__in=[transfer.from_location_id, transfer.to_location_id],
            ).values_list("location_id", "quantity")
        )

        return {
            "id": transfer.id,
            "uuid": str(transfer.uuid),
            "transfer_number": transfer.transfer_number,

            "item_id": transfer.item_id,
            "item_name": transfer.item.name,
            "variation_id": transfer.variation_id,
            "variation_name": transfer.variation.name,
            "variation_sku": transfer.variation.sku,
            "quantity": transfer.quantity,

            "from_location_id": transfer.from_location_id,
            "from_location": {
                "id": transfer.from_location.id,
                "name": transfer.from_location.name,
                "stock": stock_by_location.get(transfer.from_location_id, 0),
            },

            "to_location_id": transfer.to_location_id,
            "to_location": {
                "id": transfer.to_location.id,
                "name": transfer.to_location.name,
                "stock": stock_by_location.get(transfer.to_location_id, 0),
            },

            "status": transfer.status,
            "status_display": transfer.get_status_display(),
            "notes": transfer.notes,
            "requested_by_id": transfer.requested_by_id,
            "has_adjustments": transfer.adjustments.exists(),

            "transfer_date": transfer.transfer_date.isoformat(),
            "completed_at": transfer.completed_at.isoformat() if transfer.completed_at else None,
            "updated_at": transfer.updated_at.isoformat(),
        }

    @classmethod
    def serialize_brief(cls, transfer: InventoryTransfer) -> Dict[str, Any]:
        return {
            "id": transfer.id,
            "transfer_number": transfer.transfer_number,
            "item_name": transfer.item.name,
            "variation_name": transfer.variation.name,
            "quantity": transfer.quantity,
            "from_location": transfer.from_location.name,
            "to_location": transfer.to_location.name,
            "status": transfer.status,
            "status_display": transfer.get_status_display(),
            "transfer_date": transfer.transfer_date.isoformat(),
        }

    # ==================== LIST & GET ====================

    @classmethod
    def _queryset(cls):
        return cls.model.objects.select_related(
            "item", "variation", "from_location", "to_location"
        )

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = None,
             status: str = None,
             from_location_id: int = None,
             to_location_id: int = None,
             variation_id: int = None,
             date_from: date = None,
             date_to: date = None) -> Dict[str, Any]:
        queryset = cls._queryset()

        if status:
            valid_statuses = [c[0] for c in InventoryTransfer.Status.choices]
            if status not in valid_statuses:
                raise ValidationError(f"Invalid status. Valid: {valid_statuses}", "status")
            queryset = queryset.filter(status=status)

        if from_location_id:
            queryset = queryset.filter(from_location_id=from_location_id)

        if to_location_id:
            queryset = queryset.filter(to_location_id=to_location_id)

        if variation_id:
            queryset = queryset.filter(variation_id=variation_id)

        if date_from:
            queryset = queryset.filter(transfer_date__date__gte=date_from)

        if date_to:
            queryset = queryset.filter(transfer_date__date__lte=date_to)

        transfers, pagination = paginate_queryset(
            queryset.order_by("-transfer_date", "-id"),
            page,
            per_page or settings.INVENTORY_TRANSFER_PAGE_SIZE,
        )

        return success_response({
            "transfers": [cls.serialize_brief(t) for t in transfers],
            "pagination": pagination,
            "statuses": [{"value": c[0], "label": c[1]} for c in InventoryTransfer.Status.choices],
        })

    @classmethod
    def get(cls, transfer_id: int) -> Dict[str, Any]:
        transfer = cls._queryset().filter(id=transfer_id).first()
        if not transfer:
            raise NotFoundError("Transfer", transfer_id)

        return success_response({"transfer": cls.serialize(transfer)})

    # ==================== CREATE ====================

    @classmethod
    def _active_location(cls, location_id: Any, field: str) -> StoreLocation:
        try:
            location = StoreLocation.objects.get(id=location_id)
        except (StoreLocation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Location", location_id)
        if not location.is_active:
            raise ValidationError(f"Location '{location.name}' is inactive", field)
        return location

    @classmethod
    def _item_and_variation(cls, item_id: Any, variation_id: Any):
        try:
            item = InventoryItem.objects.get(id=item_id)
        except (InventoryItem.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Item", item_id)
        try:
            variation = InventoryVariation.objects.get(id=variation_id)
        except (InventoryVariation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Variation", variation_id)
        if variation.item_id != item.id:
            raise ValidationError(
                f"Variation '{variation.name}' does not belong to item '{item.name}'", "variation_id"
            )
        return item, variation

    @classmethod
    def create(cls,
               inventory_item_id: int,
               variation_id: int,
               quantity: Any,
               from_location_id: int,
               to_location_id: int,
               requested_by_id: int = None,
               notes: str = "") -> Dict[str, Any]:
        quantity = to_int(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("Quantity must be a positive whole number", "quantity")

        item, variation = cls._item_and_variation(inventory_item_id, variation_id)
        from_location = cls._active_location(from_location_id, "from_location_id")
        to_location = cls._active_location(to_location_id, "to_location_id")

        if from_location.id == to_location.id:
            raise ValidationError("Cannot transfer to the same location", "to_location_id")

        # Two same-day creates can race for the next number; retry on the unique constraint.
        for attempt in range(3):
            try:
                with transaction.atomic():
                    transfer = cls.model.objects.create(
                        transfer_number=generate_number("TRF", cls.model, "transfer_number"),
                        item=item,
                        variation=variation,
                        quantity=quantity,
                        from_location=from_location,
                        to_location=to_location,
                        status=InventoryTransfer.Status.PENDING,
                        requested_by_id=requested_by_id,
                        notes=notes or "",
                    )
                break
            except IntegrityError:
                if attempt == 2:
                    raise

        logger.info(
            "Created transfer %s: %s x%s %s -> %s",
            transfer.transfer_number, variation, quantity, from_location.id, to_location.id,
        )

        return success_response({
            "id": transfer.id,
            "transfer_number": transfer.transfer_number,
            "transfer": cls.serialize(transfer)
        }, f"Transfer {transfer.transfer_number} created")

    # ==================== UPDATE ====================

    @classmethod
    @transaction.atomic
    def update(cls, transfer_id: int, /, **kwargs) -> Dict[str, Any]:
        """Non-status field edits. Quantity is fixed at creation."""
        for field in cls.IMMUTABLE_FIELDS:
            if field in kwargs:
                if field == "status":
                    message = "Status can only be changed through the status endpoint"
                else:
                    message = "Quantity cannot be changed after a transfer is created"
                raise ValidationError(message, field)

        unknown = set(kwargs) - set(cls.EDITABLE_WHILE_PENDING) - {"notes"}
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}", sorted(unknown)[0])

        transfer = cls.model.objects.select_for_update().filter(id=transfer_id).first()
        if not transfer:
            raise NotFoundError("Transfer", transfer_id)

        update_fields = ["updated_at"]

        if any(field in kwargs for field in cls.EDITABLE_WHILE_PENDING):
            if transfer.status != InventoryTransfer.Status.PENDING:
                raise BusinessRuleError(
                    f"Cannot change item or locations of a {transfer.get_status_display()} transfer",
                    "transfer_not_pending",
                )

            item, variation = cls._item_and_variation(
                kwargs.get("inventory_item_id", transfer.item_id),
                kwargs.get("variation_id", transfer.variation_id),
            )
            from_location = (
                cls._active_location(kwargs["from_location_id"], "from_location_id")
                if "from_location_id" in kwargs else transfer.from_location
            )
            to_location = (
                cls._active_location(kwargs["to_location_id"], "to_location_id")
                if "to_location_id" in kwargs else transfer.to_location
            )
            if from_location.id == to_location.id:
                raise ValidationError("Cannot transfer to the same location", "to_location_id")

            transfer.item = item
            transfer.variation = variation
            transfer.from_location = from_location
            transfer.to_location = to_location
            update_fields += ["item", "variation", "from_location", "to_location"]

        if "notes" in kwargs:
            transfer.notes = kwargs["notes"] or ""
            update_fields.append("notes")

        transfer.save(update_fields=update_fields)

        return success_response({
            "transfer": cls.serialize(transfer)
        }, "Transfer updated")

    # ==================== DELETE ====================

    @classmethod
    @transaction.atomic
    def delete(cls, transfer_id: int) -> Dict[str, Any]:
        transfer = cls.model.objects.select_for_update().filter(id=transfer_id).first()
        if not transfer:
            raise NotFoundError("Transfer", transfer_id)

        if transfer.status == InventoryTransfer.Status.COMPLETED:
            raise BusinessRuleError(
                "Cannot delete a completed transfer. Move it out of Completed first.",
                "transfer_completed",
            )

        if transfer.adjustments.exists():
            raise BusinessRuleError(
                "Cannot delete a transfer that has stock adjustments recorded against it",
                "transfer_has_adjustments",
            )

        transfer_number = transfer.transfer_number
        transfer.delete()
        logger.info("Deleted transfer %s", transfer_number)

        return success_response({"id": transfer_id}, f"Transfer {transfer_number} deleted")
