from .staff_service import StaffService
from .auth_service import AuthService

__all__ = [
    "StaffService",
    "AuthService",
]
