import logging
from typing import Dict, Any

from django.db import transaction
from django.db.models import Count, Q, Sum

from inventory.models import StoreLocation, StockLevel, InventoryTransfer
from inventory.services.base_service import (
    BaseService, success_response,
    ValidationError, NotFoundError, BusinessRuleError
)

logger = logging.getLogger(__name__)


class StoreLocationService(BaseService):
    model = StoreLocation

    @classmethod
    def serialize(cls, location: StoreLocation, include_stats: bool = False) -> Dict[str, Any]:
        data = {
            "id": location.id,
            "uuid": str(location.uuid),
            "name": location.name,
            "address": location.address,
            "phone": location.phone,
            "is_active": location.is_active,
            "sort_order": location.sort_order,
            "created_at": location.created_at.isoformat(),
        }

        if include_stats:
            stats = StockLevel.objects.filter(location=location).aggregate(
                total_variations=Count("id"),
                total_quantity=Sum("quantity"),
            )
            data["stats"] = {
                "variation_count": stats["total_variations"] or 0,
                "total_quantity": stats["total_quantity"] or 0,
            }

        return data

    @classmethod
    def list(cls, include_inactive: bool = False, include_stats: bool = False) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if not include_inactive:
            queryset = queryset.filter(is_active=True)

        locations = [
            cls.serialize(loc, include_stats=include_stats)
            for loc in queryset.order_by("sort_order", "name")
        ]

        return success_response({
            "locations": locations,
            "count": len(locations),
        })

    @classmethod
    def get(cls, location_id: int, include_stats: bool = True) -> Dict[str, Any]:
        location = cls.get_by_id(location_id)
        if not location:
            raise NotFoundError("Location", location_id)

        return success_response({
            "location": cls.serialize(location, include_stats=include_stats)
        })

    @classmethod
    @transaction.atomic
    def create(cls, name: str, address: str = "", phone: str = "", sort_order: int = 0) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Location name is required", "name")

        if cls.model.objects.filter(name__iexact=name).exists():
            raise ValidationError(f"Location with name '{name}' already exists", "name")

        location = cls.model.objects.create(
            name=name,
            address=address or "",
            phone=phone or "",
            sort_order=sort_order or 0,
        )
        logger.info("Created location %s (%s)", location.id, location.name)

        return success_response({
            "id": location.id,
            "uuid": str(location.uuid),
            "location": cls.serialize(location)
        }, f"Location '{name}' created")

    @classmethod
    @transaction.atomic
    def update(cls, location_id: int, /, **kwargs) -> Dict[str, Any]:
        location = cls.get_by_id(location_id)
        if not location:
            raise NotFoundError("Location", location_id)

        if "name" in kwargs:
            kwargs["name"] = (kwargs["name"] or "").strip()
            if not kwargs["name"]:
                raise ValidationError("Location name is required", "name")
            if cls.model.objects.filter(name__iexact=kwargs["name"]).exclude(id=location_id).exists():
                raise ValidationError(f"Location with name '{kwargs['name']}' already exists", "name")

        update_fields = ["updated_at"]
        for field in ["name", "address", "phone", "sort_order"]:
            if field in kwargs:
                setattr(location, field, kwargs[field])
                update_fields.append(field)

        location.save(update_fields=update_fields)

        return success_response({
            "location": cls.serialize(location)
        }, "Location updated")

    @classmethod
    @transaction.atomic
    def deactivate(cls, location_id: int) -> Dict[str, Any]:
        location = cls.get_by_id(location_id)
        if not location:
            raise NotFoundError("Location", location_id)

        if StockLevel.objects.filter(location=location, quantity__gt=0).exists():
            raise BusinessRuleError(
                "Cannot deactivate location with stock. Transfer stock first.", "location_has_stock"
            )

        has_open_transfers = InventoryTransfer.objects.filter(
            Q(from_location=location) | Q(to_location=location),
            status__in=[InventoryTransfer.Status.PENDING, InventoryTransfer.Status.IN_TRANSIT],
        ).exists()

        if has_open_transfers:
            raise BusinessRuleError(
                "Cannot deactivate location with open transfers", "location_has_open_transfers"
            )

        location.is_active = False
        location.save(update_fields=["is_active", "updated_at"])
        logger.info("Deactivated location %s", location.id)

        return success_response({"id": location_id}, "Location deactivated")
