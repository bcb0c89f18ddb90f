from typing import Dict, Any, Optional, List, Tuple
from django.db import transaction
from django.db.models import Model
from django.utils import timezone


class ServiceError(Exception):
    def __init__(self, message: str, code: str = "ERROR", details: Dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    def __init__(self, message: str, field: str = None, details: Dict = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field
        if field:
            self.details.setdefault("field", field)


class NotFoundError(ServiceError):
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found: {identifier}",
            "NOT_FOUND",
            {"resource": resource, "identifier": str(identifier)}
        )


class BusinessRuleError(ServiceError):
    def __init__(self, message: str, rule: str = None):
        super().__init__(message, "BUSINESS_RULE_VIOLATION", {"rule": rule})


class UnauthorizedError(ServiceError):
    def __init__(self, actor_id: Any):
        super().__init__(
            f"Staff member {actor_id} cannot be resolved to an active staff identity",
            "UNAUTHORIZED",
            {"actor_id": str(actor_id)}
        )


class InsufficientStockError(ServiceError):
    code = "INSUFFICIENT_STOCK"
    label = "Insufficient stock"

    def __init__(self, item_name: str, location_name: str, required: int, available: int):
        super().__init__(
            f"{self.label} for {item_name} at {location_name}: required {required}, available {available}",
            self.code,
            {
                "item": item_name,
                "location": location_name,
                "required": required,
                "available": available,
            }
        )


class InsufficientStockForReversalError(InsufficientStockError):
    """The destination no longer holds enough of the transferred stock to give it back."""
    code = "INSUFFICIENT_STOCK_FOR_REVERSAL"
    label = "Insufficient stock to reverse transfer"


class TransactionFailureError(ServiceError):
    """The unit of work could not commit. Nothing was applied and the call may be retried."""

    def __init__(self, message: str, details: Dict = None):
        super().__init__(message, "TRANSACTION_FAILURE", details)
        self.retryable = True


def success_response(data: Any = None, message: str = "Success") -> Dict:
    response = {"success": True, "message": message}
    if data is not None:
        if isinstance(data, dict):
            response.update(data)
        else:
            response["data"] = data
    return response


def error_response(message: str, code: str = "ERROR", details: Dict = None) -> Dict:
    return {
        "success": False,
        "message": message,
        "error_code": code,
        "details": details or {}
    }


def paginate_queryset(queryset, page: int = 1, per_page: int = 20) -> Tuple[List, Dict]:
    page = max(1, page)
    per_page = min(max(1, per_page), 100)

    total = queryset.count()
    total_pages = (total + per_page - 1) // per_page

    offset = (page - 1) * per_page
    items = list(queryset[offset:offset + per_page])

    return items, {
        "page": page,
        "per_page": per_page,
        "total_items": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1
    }


def to_int(value: Any, field: str) -> int:
    """Strict integer coercion: accepts ints and integral strings, rejects bools and fractions."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer", field)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValidationError(f"{field} must be an integer", field) from None
    raise ValidationError(f"{field} must be an integer", field)


def generate_number(prefix: str, model_class: Model, field: str = "transfer_number") -> str:
    today = timezone.now()
    date_part = today.strftime("%Y%m%d")
    filter_kwargs = {f"{field}__startswith": f"{prefix}-{date_part}"}
    last = model_class.objects.filter(**filter_kwargs).order_by(f"-{field}").first()

    if last:
        last_num = getattr(last, field)
        try:
            seq = int(last_num.split("-")[-1]) + 1
        except ValueError:
            seq = 1
    else:
        seq = 1

    return f"{prefix}-{date_part}-{seq:04d}"


def require_atomic(operation: str):
    if not transaction.get_connection().in_atomic_block:
        raise BusinessRuleError(
            f"{operation} must run inside a database transaction", "atomic_required"
        )


class BaseService:
    model = None

    @classmethod
    def get_by_id(cls, id: int) -> Optional[Model]:
        try:
            return cls.model.objects.get(id=id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            return None

    @classmethod
    def get_or_404(cls, id: int) -> Model:
        obj = cls.get_by_id(id)
        if not obj:
            raise NotFoundError(cls.model.__name__, id)
        return obj

    @classmethod
    def exists(cls, id: int) -> bool:
        return cls.model.objects.filter(id=id).exists()

    @classmethod
    def get_active(cls):
        if hasattr(cls.model, 'is_active'):
            return cls.model.objects.filter(is_active=True)
        return cls.model.objects.all()
