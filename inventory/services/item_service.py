from typing import Dict, Any, List
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Q, Sum

from inventory.models import InventoryItem, InventoryVariation, StockLevel
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError
)


class InventoryItemService(BaseService):
    model = InventoryItem

    @classmethod
    def serialize_variation(cls, variation: InventoryVariation, include_levels: bool = False) -> Dict[str, Any]:
        data = {
            "id": variation.id,
            "uuid": str(variation.uuid),
            "item_id": variation.item_id,
            "name": variation.name,
            "sku": variation.sku,
            "barcode": variation.barcode,
            "price": str(variation.price),
            "is_active": variation.is_active,
        }

        if include_levels:
            levels = StockLevel.objects.filter(variation=variation).select_related("location")
            data["stock_levels"] = [
                {
                    "location_id": lvl.location_id,
                    "location_name": lvl.location.name,
                    "quantity": lvl.quantity,
                }
                for lvl in levels
            ]
            data["total_stock"] = levels.aggregate(total=Sum("quantity"))["total"] or 0

        return data

    @classmethod
    def serialize(cls, item: InventoryItem, include_levels: bool = False) -> Dict[str, Any]:
        return {
            "id": item.id,
            "uuid": str(item.uuid),
            "name": item.name,
            "sku": item.sku,
            "description": item.description,
            "is_active": item.is_active,
            "variations": [
                cls.serialize_variation(v, include_levels=include_levels)
                for v in item.variations.all().order_by("name")
            ],
            "created_at": item.created_at.isoformat(),
            "updated_at": item.updated_at.isoformat(),
        }

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             active_only: bool = True) -> Dict[str, Any]:

        queryset = cls.model.objects.prefetch_related("variations")

        if active_only:
            queryset = queryset.filter(is_active=True)

        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(sku__icontains=search) |
                Q(variations__name__icontains=search) |
                Q(variations__sku__icontains=search) |
                Q(variations__barcode__icontains=search)
            ).distinct()

        items, pagination = paginate_queryset(queryset.order_by("name"), page, per_page)

        return success_response({
            "items": [cls.serialize(item) for item in items],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, item_id: int) -> Dict[str, Any]:
        item = cls.get_by_id(item_id)
        if not item:
            raise NotFoundError("Item", item_id)

        return success_response({"item": cls.serialize(item, include_levels=True)})

    @classmethod
    def get_variation(cls, variation_id: int) -> InventoryVariation:
        try:
            return InventoryVariation.objects.select_related("item").get(id=variation_id)
        except (InventoryVariation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Variation", variation_id)

    @classmethod
    @transaction.atomic
    def create(cls,
               name: str,
               sku: str = None,
               description: str = "",
               variations: List[Dict[str, Any]] = None) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Item name is required", "name")

        if sku and cls.model.objects.filter(sku=sku).exists():
            raise ValidationError(f"SKU '{sku}' already exists", "sku")

        item = cls.model.objects.create(
            name=name,
            sku=sku or None,
            description=description or "",
        )

        for variation_data in variations or []:
            cls._create_variation(item, **variation_data)

        return success_response({
            "id": item.id,
            "uuid": str(item.uuid),
            "item": cls.serialize(item)
        }, f"Item '{name}' created")

    @classmethod
    @transaction.atomic
    def add_variation(cls, item_id: int, name: str, sku: str = None,
                      barcode: str = None, price: Any = 0) -> Dict[str, Any]:
        item = cls.get_by_id(item_id)
        if not item:
            raise NotFoundError("Item", item_id)

        if not item.is_active:
            raise BusinessRuleError("Cannot add a variation to an inactive item", "item_inactive")

        variation = cls._create_variation(item, name=name, sku=sku, barcode=barcode, price=price)

        return success_response({
            "id": variation.id,
            "variation": cls.serialize_variation(variation)
        }, f"Variation '{variation.name}' created")

    @classmethod
    def _create_variation(cls, item: InventoryItem, name: str, sku: str = None,
                          barcode: str = None, price: Any = 0) -> InventoryVariation:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Variation name is required", "name")

        if sku and InventoryVariation.objects.filter(sku=sku).exists():
            raise ValidationError(f"SKU '{sku}' already exists", "sku")

        try:
            price = Decimal(str(price if price is not None else 0))
        except InvalidOperation:
            raise ValidationError("Price must be a number", "price")

        if price < 0:
            raise ValidationError("Price cannot be negative", "price")

        return InventoryVariation.objects.create(
            item=item,
            name=name,
            sku=sku or None,
            barcode=barcode or None,
            price=price,
        )
