from functools import wraps

from staff.services.auth_service import AuthService
from .request import get_bearer_token
from .response import APIResponse


def staff_required(view_func):
    """Reject the request unless it carries a live staff bearer token; sets request.staff."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        staff = AuthService.get_staff_from_token(get_bearer_token(request))
        if staff is None:
            return APIResponse.unauthorized('Valid staff token required')
        request.staff = staff
        return view_func(request, *args, **kwargs)
    return wrapper


def admin_required(view_func):
    @wraps(view_func)
    @staff_required
    def wrapper(request, *args, **kwargs):
        if request.staff.role not in ('ADMIN', 'MANAGER'):
            return APIResponse.error('Admin or manager role required', 'FORBIDDEN', 403)
        return view_func(request, *args, **kwargs)
    return wrapper
