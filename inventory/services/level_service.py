import logging
from contextlib import contextmanager
from typing import Dict, Any, Iterable, Optional, Tuple, Type

from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection, transaction
from django.db.models import Sum, F
from django.utils import timezone

from inventory.models import StockLevel, InventoryVariation, StoreLocation
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset,
    NotFoundError, InsufficientStockError, TransactionFailureError, require_atomic
)

logger = logging.getLogger(__name__)


class StockLevelService(BaseService):
    model = StockLevel

    @classmethod
    def serialize(cls, level: StockLevel) -> Dict[str, Any]:
        return {
            "id": level.id,
            "uuid": str(level.uuid),
            "variation_id": level.variation_id,
            "variation": {
                "id": level.variation.id,
                "name": level.variation.name,
                "sku": level.variation.sku,
                "item_id": level.variation.item_id,
                "item_name": level.variation.item.name,
            },
            "location_id": level.location_id,
            "location": {
                "id": level.location.id,
                "name": level.location.name,
            },
            "quantity": level.quantity,
            "last_movement_at": level.last_movement_at.isoformat() if level.last_movement_at else None,
        }

    @classmethod
    def get_all(cls,
                location_id: int = None,
                variation_id: int = None,
                item_id: int = None,
                page: int = 1,
                per_page: int = 50) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related(
            "variation", "variation__item", "location"
        )

        if location_id:
            queryset = queryset.filter(location_id=location_id)

        if variation_id:
            queryset = queryset.filter(variation_id=variation_id)

        if item_id:
            queryset = queryset.filter(variation__item_id=item_id)

        queryset = queryset.order_by("variation__item__name", "variation__name", "location__name")

        levels, pagination = paginate_queryset(queryset, page, per_page)

        return success_response({
            "levels": [cls.serialize(lvl) for lvl in levels],
            "pagination": pagination
        })

    @classmethod
    def get_for_variation(cls, variation_id: int) -> Dict[str, Any]:
        if not InventoryVariation.objects.filter(id=variation_id).exists():
            raise NotFoundError("Variation", variation_id)

        levels = cls.model.objects.filter(
            variation_id=variation_id
        ).select_related("variation", "variation__item", "location").order_by("location__name")

        total = levels.aggregate(total_qty=Sum("quantity"))

        return success_response({
            "levels": [cls.serialize(lvl) for lvl in levels],
            "total_quantity": total["total_qty"] or 0,
        })

    @classmethod
    def get_for_location(cls, location_id: int) -> Dict[str, Any]:
        if not StoreLocation.objects.filter(id=location_id).exists():
            raise NotFoundError("Location", location_id)

        levels = cls.model.objects.filter(
            location_id=location_id,
        ).select_related(
            "variation", "variation__item", "location"
        ).order_by("variation__item__name", "variation__name")

        return success_response({
            "levels": [cls.serialize(lvl) for lvl in levels],
            "count": levels.count()
        })

    @classmethod
    def get_quantity(cls, variation_id: int, location_id: int) -> int:
        quantity = cls.model.objects.filter(
            variation_id=variation_id, location_id=location_id
        ).values_list("quantity", flat=True).first()
        return quantity or 0


class StockLedger:
    """
    The only code path that writes StockLevel rows.

    Every method must be called inside transaction.atomic(). Rows are locked
    with SELECT ... FOR UPDATE and decrements are a single conditional UPDATE,
    so concurrent writers on the same (variation, location) never lose updates
    and stock never goes negative.
    """

    @classmethod
    @contextmanager
    def unit_of_work(cls, operation: str):
        """
        One atomic unit of work for a stock mutation.

        On PostgreSQL the statement and lock timeouts are set locally to
        INVENTORY_TRANSITION_TIMEOUT_MS. Any database failure (deadlock, lock
        timeout, serialization or commit failure) rolls everything back and
        is raised as TransactionFailureError.
        """
        try:
            with transaction.atomic():
                cls._apply_timeouts()
                yield
        except DatabaseError as exc:
            logger.warning("%s rolled back: %s", operation, exc)
            raise TransactionFailureError(
                f"{operation} could not be completed, no changes were applied. Please retry.",
                {"operation": operation, "reason": exc.__class__.__name__},
            ) from exc

    @staticmethod
    def _apply_timeouts():
        if connection.vendor != "postgresql":
            return
        timeout = str(settings.INVENTORY_TRANSITION_TIMEOUT_MS)
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT set_config('statement_timeout', %s, true), set_config('lock_timeout', %s, true)",
                [timeout, timeout],
            )

    @classmethod
    def lock(cls, variation_id: int, location_ids: Iterable[int]) -> Dict[int, StockLevel]:
        """Lock the existing rows one at a time in ascending location id order."""
        require_atomic("StockLedger.lock")

        locked = {}
        for location_id in sorted(set(location_ids)):
            level = StockLevel.objects.select_for_update().filter(
                variation_id=variation_id, location_id=location_id
            ).order_by("pk").first()
            if level is not None:
                locked[location_id] = level
        return locked

    @classmethod
    def withdraw(cls,
                 variation_id: int,
                 location_id: int,
                 quantity: int,
                 level: Optional[StockLevel] = None,
                 error_class: Type[InsufficientStockError] = InsufficientStockError) -> Tuple[StockLevel, int, int]:
        """Take quantity out of a row. Returns (level, before, after)."""
        require_atomic("StockLedger.withdraw")

        if level is None:
            raise cls._insufficient(error_class, variation_id, location_id, quantity, 0)

        now = timezone.now()
        updated = StockLevel.objects.filter(
            pk=level.pk, quantity__gte=quantity
        ).update(
            quantity=F("quantity") - quantity,
            last_movement_at=now,
            updated_at=now,
        )

        level.refresh_from_db(fields=["quantity", "last_movement_at", "updated_at"])
        if not updated:
            raise cls._insufficient(error_class, variation_id, location_id, quantity, level.quantity)

        return level, level.quantity + quantity, level.quantity

    @classmethod
    def deposit(cls,
                variation_id: int,
                location_id: int,
                quantity: int,
                level: Optional[StockLevel] = None) -> Tuple[StockLevel, int, int]:
        """Put quantity into a row, creating it when absent. Returns (level, before, after)."""
        require_atomic("StockLedger.deposit")

        now = timezone.now()
        if level is None:
            try:
                with transaction.atomic():
                    level = StockLevel.objects.create(
                        variation_id=variation_id,
                        location_id=location_id,
                        quantity=quantity,
                        last_movement_at=now,
                    )
                return level, 0, quantity
            except IntegrityError:
                # Another transaction created the row first; lock it and fall through.
                level = StockLevel.objects.select_for_update().get(
                    variation_id=variation_id, location_id=location_id
                )

        StockLevel.objects.filter(pk=level.pk).update(
            quantity=F("quantity") + quantity,
            last_movement_at=now,
            updated_at=now,
        )
        level.refresh_from_db(fields=["quantity", "last_movement_at", "updated_at"])

        return level, level.quantity - quantity, level.quantity

    @staticmethod
    def _insufficient(error_class, variation_id, location_id, required, available):
        variation = InventoryVariation.objects.select_related("item").filter(id=variation_id).first()
        location = StoreLocation.objects.filter(id=location_id).first()
        return error_class(
            str(variation) if variation else f"variation #{variation_id}",
            location.name if location else f"location #{location_id}",
            required,
            available,
        )
