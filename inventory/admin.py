from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from django.urls import reverse
from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display
from unfold.contrib.filters.admin import RangeDateTimeFilter, RangeNumericFilter

from .models import (
    StoreLocation, InventoryItem, InventoryVariation,
    StockLevel, InventoryTransfer, InventoryAdjustment,
)


class ReadOnlyAdminMixin:
    """Rows written only by inventory services; the admin can look but not touch."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class InventoryVariationInline(TabularInline):
    model = InventoryVariation
    extra = 0
    fields = ('name', 'sku', 'barcode', 'price', 'is_active')


class TransferAdjustmentInline(ReadOnlyAdminMixin, TabularInline):
    model = InventoryAdjustment
    extra = 0
    fields = ('location', 'change_amount', 'stock_before', 'stock_after', 'reason', 'adjusted_by', 'created_at')
    readonly_fields = fields


@admin.register(StoreLocation)
class StoreLocationAdmin(ModelAdmin):
    list_display = ['id', 'name', 'address', 'phone', 'active_badge', 'sort_order']
    list_filter = ['is_active']
    search_fields = ['name', 'address']
    list_filter_submit = True

    @display(description=_("Status"), label={'Active': 'success', 'Inactive': 'danger'})
    def active_badge(self, obj):
        return 'Active' if obj.is_active else 'Inactive'


@admin.register(InventoryItem)
class InventoryItemAdmin(ModelAdmin):
    list_display = ['id', 'name', 'sku', 'variation_count', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'sku', 'variations__name', 'variations__sku', 'variations__barcode']
    list_filter_submit = True
    inlines = [InventoryVariationInline]

    @display(description=_("Variations"))
    def variation_count(self, obj):
        return obj.variations.count()


@admin.register(StockLevel)
class StockLevelAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = ['id', 'variation', 'location', 'quantity', 'last_movement_at']
    list_filter = [
        'location',
        ('quantity', RangeNumericFilter),
    ]
    search_fields = ['variation__name', 'variation__sku', 'variation__item__name']
    list_filter_submit = True
    list_select_related = ['variation', 'variation__item', 'location']


@admin.register(InventoryTransfer)
class InventoryTransferAdmin(ModelAdmin):
    list_display = ['transfer_number', 'variation', 'quantity', 'from_location', 'to_location',
                    'status_badge', 'transfer_date', 'completed_at']
    list_filter = [
        'status',
        'from_location',
        'to_location',
        ('transfer_date', RangeDateTimeFilter),
    ]
    search_fields = ['transfer_number', 'variation__name', 'item__name', 'notes']
    list_filter_submit = True
    list_fullwidth = True
    list_select_related = ['item', 'variation', 'from_location', 'to_location']
    inlines = [TransferAdjustmentInline]

    # Status moves only through TransferStatusService; quantity is fixed at creation.
    readonly_fields = ['transfer_number', 'status', 'quantity', 'completed_at', 'transfer_date', 'updated_at']

    fieldsets = (
        (_('Transfer'), {
            'fields': ('transfer_number', 'item', 'variation', 'quantity', 'from_location', 'to_location'),
        }),
        (_('Status'), {
            'fields': ('status', 'transfer_date', 'completed_at', 'updated_at'),
        }),
        (_('Notes'), {
            'fields': ('requested_by', 'notes'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @display(
        description=_("Status"),
        label={
            'PENDING': 'info',
            'IN_TRANSIT': 'warning',
            'COMPLETED': 'success',
            'CANCELLED': 'danger',
        },
    )
    def status_badge(self, obj):
        return obj.status


@admin.register(InventoryAdjustment)
class InventoryAdjustmentAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = ['id', 'variation', 'location', 'change_display', 'stock_before', 'stock_after',
                    'transfer_link', 'adjusted_by', 'created_at']
    list_filter = [
        'location',
        'approved',
        ('created_at', RangeDateTimeFilter),
    ]
    search_fields = ['reason', 'variation__name', 'item__name', 'transfer__transfer_number']
    list_filter_submit = True
    list_fullwidth = True
    list_select_related = ['variation', 'variation__item', 'location', 'transfer', 'adjusted_by']

    @display(description=_("Change"), ordering='change_amount')
    def change_display(self, obj):
        return f"{obj.change_amount:+d}"

    @display(description=_("Transfer"))
    def transfer_link(self, obj):
        if obj.transfer_id:
            url = reverse('admin:inventory_inventorytransfer_change', args=[obj.transfer_id])
            return format_html('<a href="{}">{}</a>', url, obj.transfer.transfer_number)
        return "-"
