import json
import logging
from datetime import date

from django.http import JsonResponse
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator

from inventory.services import (
    ServiceError, ValidationError, NotFoundError, BusinessRuleError, UnauthorizedError,
    InsufficientStockError, TransactionFailureError, TransitionResult,
    StoreLocationService, InventoryItemService,
    StockLevelService, InventoryAdjustmentService,
    InventoryTransferService, TransferStatusService,
)
from staff.helpers.request import get_bearer_token
from staff.services.auth_service import AuthService

logger = logging.getLogger(__name__)


def error_response(message: str, code: str = "ERROR", status: int = 400, details: dict = None):
    data = {"success": False, "error": {"code": code, "message": message}}
    if details:
        data["error"]["details"] = details
    return JsonResponse(data, status=status)


def status_code_for(e: ServiceError) -> int:
    if isinstance(e, ValidationError):
        return 400
    elif isinstance(e, UnauthorizedError):
        return 401
    elif isinstance(e, NotFoundError):
        return 404
    elif isinstance(e, InsufficientStockError):
        return 409
    elif isinstance(e, TransactionFailureError):
        return 503
    elif isinstance(e, BusinessRuleError):
        return 400
    return 500


def handle_service_error(e: Exception):
    if isinstance(e, ServiceError):
        return error_response(e.message, e.code, status_code_for(e), e.details)
    elif isinstance(e, KeyError):
        field = e.args[0] if e.args else "unknown"
        return error_response(f"Missing field: {field}", "VALIDATION_ERROR", 400, {"field": field})
    elif isinstance(e, ValueError):
        return error_response(str(e), "VALIDATION_ERROR", 400)
    else:
        logger.exception("Unhandled error in inventory API")
        return error_response("Internal server error", "SERVER_ERROR", 500)


def query_int(request, name: str, default: int = None):
    value = request.GET.get(name)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", name)


def query_date(request, name: str):
    value = request.GET.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)", name)


class BaseInventoryView(View):
    """JSON views for the staff dashboard. Every request needs a staff bearer token."""

    @method_decorator(csrf_exempt)
    def dispatch(self, request, *args, **kwargs):
        staff = AuthService.get_staff_from_token(get_bearer_token(request))
        if staff is None:
            return error_response("Valid staff token required", "UNAUTHORIZED", 401)
        request.staff = staff
        return super().dispatch(request, *args, **kwargs)

    def get_json_body(self, request):
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except json.JSONDecodeError:
            raise ValidationError("Request body must be valid JSON", "body")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object", "body")
        return data

    def success(self, data: dict, status: int = 200):
        return JsonResponse({"success": True, **data}, status=status)


# ==================== LOCATIONS ====================

class LocationListView(BaseInventoryView):
    """GET/POST /api/inventory/locations/"""

    def get(self, request):
        try:
            result = StoreLocationService.list(
                include_inactive=request.GET.get("include_inactive", "false").lower() == "true",
                include_stats=request.GET.get("stats", "false").lower() == "true",
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = StoreLocationService.create(
                name=data["name"],
                address=data.get("address", ""),
                phone=data.get("phone", ""),
                sort_order=data.get("sort_order", 0),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class LocationDetailView(BaseInventoryView):
    """GET/PUT/DELETE /api/inventory/locations/<id>/"""

    def get(self, request, location_id):
        try:
            return self.success(StoreLocationService.get(location_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, location_id):
        try:
            data = self.get_json_body(request)
            return self.success(StoreLocationService.update(location_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, location_id):
        try:
            return self.success(StoreLocationService.deactivate(location_id))
        except Exception as e:
            return handle_service_error(e)


# ==================== ITEMS ====================

class ItemListView(BaseInventoryView):
    """GET/POST /api/inventory/items/"""

    def get(self, request):
        try:
            result = InventoryItemService.list(
                page=query_int(request, "page", 1),
                per_page=query_int(request, "per_page", 20),
                search=request.GET.get("search"),
                active_only=request.GET.get("include_inactive", "false").lower() != "true",
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = InventoryItemService.create(
                name=data["name"],
                sku=data.get("sku"),
                description=data.get("description", ""),
                variations=data.get("variations", []),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class ItemDetailView(BaseInventoryView):
    """GET /api/inventory/items/<id>/"""

    def get(self, request, item_id):
        try:
            return self.success(InventoryItemService.get(item_id))
        except Exception as e:
            return handle_service_error(e)


class ItemVariationView(BaseInventoryView):
    """POST /api/inventory/items/<id>/variations/"""

    def post(self, request, item_id):
        try:
            data = self.get_json_body(request)
            result = InventoryItemService.add_variation(
                item_id,
                name=data["name"],
                sku=data.get("sku"),
                barcode=data.get("barcode"),
                price=data.get("price", 0),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


# ==================== STOCK LEVELS ====================

class StockLevelListView(BaseInventoryView):
    """GET /api/inventory/levels/"""

    def get(self, request):
        try:
            result = StockLevelService.get_all(
                location_id=query_int(request, "location_id"),
                variation_id=query_int(request, "variation_id"),
                item_id=query_int(request, "item_id"),
                page=query_int(request, "page", 1),
                per_page=query_int(request, "per_page", 50),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class StockLevelVariationView(BaseInventoryView):
    """GET /api/inventory/levels/variation/<id>/"""

    def get(self, request, variation_id):
        try:
            return self.success(StockLevelService.get_for_variation(variation_id))
        except Exception as e:
            return handle_service_error(e)


class StockLevelLocationView(BaseInventoryView):
    """GET /api/inventory/levels/location/<id>/"""

    def get(self, request, location_id):
        try:
            return self.success(StockLevelService.get_for_location(location_id))
        except Exception as e:
            return handle_service_error(e)


# ==================== ADJUSTMENTS ====================

class AdjustmentListView(BaseInventoryView):
    """GET/POST /api/inventory/adjustments/"""

    def get(self, request):
        try:
            result = InventoryAdjustmentService.list(
                transfer_id=query_int(request, "transfer_id"),
                location_id=query_int(request, "location_id"),
                variation_id=query_int(request, "variation_id"),
                staff_id=query_int(request, "staff_id"),
                page=query_int(request, "page", 1),
                per_page=query_int(request, "per_page", 20),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = InventoryAdjustmentService.adjust_stock(
                variation_id=data["variation_id"],
                location_id=data["location_id"],
                change_amount=data["change_amount"],
                reason=data.get("reason", ""),
                actor_id=request.staff.id,
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class AdjustmentDetailView(BaseInventoryView):
    """GET /api/inventory/adjustments/<id>/"""

    def get(self, request, adjustment_id):
        try:
            return self.success(InventoryAdjustmentService.get(adjustment_id))
        except Exception as e:
            return handle_service_error(e)


# ==================== TRANSFERS ====================

class TransferListView(BaseInventoryView):
    """GET/POST /api/inventory/transfers/"""

    def get(self, request):
        try:
            result = InventoryTransferService.list(
                page=query_int(request, "page", 1),
                per_page=query_int(request, "per_page"),
                status=request.GET.get("status"),
                from_location_id=query_int(request, "from_location_id"),
                to_location_id=query_int(request, "to_location_id"),
                variation_id=query_int(request, "variation_id"),
                date_from=query_date(request, "date_from"),
                date_to=query_date(request, "date_to"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = InventoryTransferService.create(
                inventory_item_id=data["inventory_item_id"],
                variation_id=data["variation_id"],
                quantity=data["quantity"],
                from_location_id=data["from_location_id"],
                to_location_id=data["to_location_id"],
                requested_by_id=request.staff.id,
                notes=data.get("notes", ""),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class TransferDetailView(BaseInventoryView):
    """GET/PUT/DELETE /api/inventory/transfers/<id>/"""

    def get(self, request, transfer_id):
        try:
            result = InventoryTransferService.get(transfer_id)
            result.update(InventoryAdjustmentService.for_transfer(transfer_id))
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, transfer_id):
        try:
            data = self.get_json_body(request)
            return self.success(InventoryTransferService.update(transfer_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, transfer_id):
        try:
            return self.success(InventoryTransferService.delete(transfer_id))
        except Exception as e:
            return handle_service_error(e)


class TransferStatusView(BaseInventoryView):
    """POST /api/inventory/transfers/<id>/status/"""

    def post(self, request, transfer_id):
        try:
            data = self.get_json_body(request)
            result = TransferStatusService.transition(transfer_id, data["status"], request.staff.id)
            return self.success(result.to_response())
        except ServiceError as e:
            return JsonResponse(
                {"success": False, **TransitionResult.error_response(e)},
                status=status_code_for(e),
            )
        except Exception as e:
            return handle_service_error(e)
