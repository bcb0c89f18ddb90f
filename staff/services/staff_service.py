import logging

from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.core.validators import validate_email
from django.db.models import Q

from staff.models import Staff

logger = logging.getLogger(__name__)


class StaffService:

    VALID_ROLES = [c[0] for c in Staff.RoleChoices.choices]
    VALID_STATUSES = [c[0] for c in Staff.StaffStatus.choices]
    MIN_PASSWORD_LENGTH = 6

    @staticmethod
    def serialize(staff):
        return {
            'id': staff.id,
            'uuid': str(staff.uuid),
            'first_name': staff.first_name,
            'last_name': staff.last_name,
            'full_name': staff.full_name,
            'email': staff.email,
            'role': staff.role,
            'status': staff.status,
            'last_login_at': staff.last_login_at.isoformat() if staff.last_login_at else None,
            'created_at': staff.created_at.isoformat(),
        }

    @staticmethod
    def get_active(staff_id):
        """Resolve an id to an ACTIVE staff member, or None."""
        if staff_id in (None, ''):
            return None
        try:
            return Staff.objects.get(id=staff_id, status=Staff.StaffStatus.ACTIVE)
        except (Staff.DoesNotExist, ValueError, TypeError):
            return None

    @staticmethod
    def get_all_staff(page=1, per_page=20, search=None, role=None, status=None):
        queryset = Staff.objects.all()

        if search:
            queryset = queryset.filter(
                Q(email__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search)
            )

        if role:
            queryset = queryset.filter(role=role)

        if status:
            queryset = queryset.filter(status=status)

        paginator = Paginator(queryset.order_by('first_name', 'last_name', 'id'), per_page)
        page_obj = paginator.get_page(page)

        return {
            'success': True,
            'staff': [StaffService.serialize(s) for s in page_obj.object_list],
            'pagination': {
                'current_page': page_obj.number,
                'total_pages': paginator.num_pages,
                'total_staff': paginator.count,
                'per_page': per_page,
                'has_next': page_obj.has_next(),
                'has_previous': page_obj.has_previous()
            }
        }

    @staticmethod
    def get_staff_by_id(staff_id):
        try:
            staff = Staff.objects.get(id=staff_id)
        except Staff.DoesNotExist:
            return {'success': False, 'message': 'Staff member not found', 'error_code': 'NOT_FOUND'}

        return {'success': True, 'staff': StaffService.serialize(staff)}

    @staticmethod
    def create_staff(first_name, last_name, email, password, role='TECHNICIAN', status='ACTIVE'):
        if not first_name or not first_name.strip():
            return {'success': False, 'message': 'First name is required', 'error_code': 'VALIDATION_ERROR'}

        if not last_name or not last_name.strip():
            return {'success': False, 'message': 'Last name is required', 'error_code': 'VALIDATION_ERROR'}

        try:
            validate_email(email or '')
        except ValidationError:
            return {'success': False, 'message': 'A valid email is required', 'error_code': 'VALIDATION_ERROR'}

        if not password or len(str(password)) < StaffService.MIN_PASSWORD_LENGTH:
            return {
                'success': False,
                'message': f'Password must be at least {StaffService.MIN_PASSWORD_LENGTH} characters',
                'error_code': 'VALIDATION_ERROR'
            }

        if role not in StaffService.VALID_ROLES:
            return {'success': False, 'message': f'Invalid role. Must be one of: {", ".join(StaffService.VALID_ROLES)}', 'error_code': 'VALIDATION_ERROR'}

        if status not in StaffService.VALID_STATUSES:
            return {'success': False, 'message': f'Invalid status. Must be one of: {", ".join(StaffService.VALID_STATUSES)}', 'error_code': 'VALIDATION_ERROR'}

        email = email.strip().lower()
        if Staff.objects.filter(email__iexact=email).exists():
            return {'success': False, 'message': 'Email already exists', 'error_code': 'DUPLICATE_EMAIL'}

        staff = Staff.objects.create(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            password=make_password(str(password)),
            role=role,
            status=status,
        )
        logger.info("Created staff member %s (%s)", staff.id, staff.role)

        return {
            'success': True,
            'message': 'Staff member created successfully',
            'staff': StaffService.serialize(staff)
        }

    @staticmethod
    def set_status(staff_id, status):
        if status not in StaffService.VALID_STATUSES:
            return {'success': False, 'message': f'Invalid status. Must be one of: {", ".join(StaffService.VALID_STATUSES)}', 'error_code': 'VALIDATION_ERROR'}

        try:
            staff = Staff.objects.get(id=staff_id)
        except Staff.DoesNotExist:
            return {'success': False, 'message': 'Staff member not found', 'error_code': 'NOT_FOUND'}

        staff.status = status
        staff.save(update_fields=['status', 'updated_at'])

        if status == Staff.StaffStatus.SUSPENDED:
            # Suspended staff lose every open session.
            staff.sessions.all().delete()

        logger.info("Staff member %s status set to %s", staff.id, status)

        return {
            'success': True,
            'message': f'Staff status updated to {status}',
            'staff': StaffService.serialize(staff)
        }
