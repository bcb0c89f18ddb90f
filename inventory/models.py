import uuid as uuid_lib

from django.db import models
from django.db.models import F, Q


class StoreLocation(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sort_order", "name"]

    def __str__(self):
        return self.name


class InventoryItem(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=50, unique=True, blank=True, null=True)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class InventoryVariation(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    item = models.ForeignKey(
        InventoryItem, on_delete=models.CASCADE, related_name="variations"
    )
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=50, unique=True, blank=True, null=True)
    barcode = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["item__name", "name"]

    def __str__(self):
        return f"{self.item.name} - {self.name}"


class StockLevel(models.Model):
    """
    Quantity on hand per variation per location.
    Only written through inventory.services.level_service.StockLedger.
    """

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    variation = models.ForeignKey(
        InventoryVariation, on_delete=models.PROTECT, related_name="stock_levels"
    )
    location = models.ForeignKey(
        StoreLocation, on_delete=models.PROTECT, related_name="stock_levels"
    )
    quantity = models.IntegerField(default=0)
    last_movement_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["location__sort_order", "location__name"]
        constraints = [
            models.UniqueConstraint(
                fields=["variation", "location"], name="stocklevel_unique_variation_location"
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=0), name="stocklevel_quantity_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.variation} @ {self.location.name}: {self.quantity}"


class InventoryTransfer(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        IN_TRANSIT = "IN_TRANSIT", "In Transit"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    transfer_number = models.CharField(max_length=50, unique=True)
    item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="transfers"
    )
    variation = models.ForeignKey(
        InventoryVariation, on_delete=models.PROTECT, related_name="transfers"
    )
    quantity = models.PositiveIntegerField()
    from_location = models.ForeignKey(
        StoreLocation, on_delete=models.PROTECT, related_name="transfers_out"
    )
    to_location = models.ForeignKey(
        StoreLocation, on_delete=models.PROTECT, related_name="transfers_in"
    )
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True
    )
    notes = models.TextField(blank=True, default="")

    requested_by = models.ForeignKey(
        "staff.Staff",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requested_transfers",
    )

    transfer_date = models.DateTimeField(auto_now_add=True, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-transfer_date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0), name="transfer_quantity_positive"
            ),
            models.CheckConstraint(
                condition=~Q(from_location=F("to_location")),
                name="transfer_locations_differ",
            ),
        ]

    def __str__(self):
        return self.transfer_number


class InventoryAdjustmentQuerySet(models.QuerySet):
    def update(self, **kwargs):
        from inventory.services.base_service import BusinessRuleError
        raise BusinessRuleError("Inventory adjustments cannot be modified", "adjustment_immutable")

    def delete(self):
        from inventory.services.base_service import BusinessRuleError
        raise BusinessRuleError("Inventory adjustments cannot be deleted", "adjustment_immutable")


class InventoryAdjustment(models.Model):
    """
    Append-only audit entry for one stock mutation.
    stock_after always equals stock_before + change_amount.
    """

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="adjustments"
    )
    variation = models.ForeignKey(
        InventoryVariation, on_delete=models.PROTECT, related_name="adjustments"
    )
    location = models.ForeignKey(
        StoreLocation, on_delete=models.PROTECT, related_name="adjustments"
    )
    transfer = models.ForeignKey(
        InventoryTransfer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="adjustments",
    )
    change_amount = models.IntegerField()
    reason = models.CharField(max_length=255)
    stock_before = models.IntegerField()
    stock_after = models.IntegerField()

    adjusted_by = models.ForeignKey(
        "staff.Staff", on_delete=models.PROTECT, related_name="adjustments_made"
    )
    approved_by = models.ForeignKey(
        "staff.Staff", on_delete=models.PROTECT, related_name="adjustments_approved"
    )
    approved = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = InventoryAdjustmentQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["variation", "location", "created_at"], name="adjustment_var_loc_created_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_after=F("stock_before") + F("change_amount")),
                name="adjustment_after_equals_before_plus_change",
            ),
        ]

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            from inventory.services.base_service import BusinessRuleError
            raise BusinessRuleError("Inventory adjustments cannot be modified", "adjustment_immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from inventory.services.base_service import BusinessRuleError
        raise BusinessRuleError("Inventory adjustments cannot be deleted", "adjustment_immutable")

    def __str__(self):
        return f"{self.variation} @ {self.location}: {self.change_amount:+d}"
