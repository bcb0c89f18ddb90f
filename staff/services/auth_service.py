from datetime import datetime, timedelta, timezone as dt_timezone
import logging

import jwt
from django.conf import settings
from django.contrib.auth.hashers import check_password
from django.db import transaction
from django.utils import timezone

from staff.models import Staff, StaffSession

logger = logging.getLogger(__name__)


class AuthService:
    JWT_SECRET = getattr(settings, 'JWT_SECRET_KEY', settings.SECRET_KEY)
    JWT_ALGORITHM = getattr(settings, 'JWT_ALGORITHM', 'HS256')
    JWT_EXPIRY_DAYS = getattr(settings, 'JWT_EXPIRY_DAYS', 7)

    @classmethod
    @transaction.atomic
    def login(cls, email, password, ip_address='', user_agent=''):
        try:
            staff = Staff.objects.get(email__iexact=(email or '').strip())
        except Staff.DoesNotExist:
            return {'success': False, 'token': None, 'staff': None, 'message': 'Invalid credentials'}

        if staff.status != Staff.StaffStatus.ACTIVE:
            return {'success': False, 'token': None, 'staff': None, 'message': 'Account suspended'}

        if not check_password(password or '', staff.password):
            logger.warning("Failed login for staff %s from %s", staff.id, ip_address or 'unknown')
            return {'success': False, 'token': None, 'staff': None, 'message': 'Invalid credentials'}

        token = cls._generate_token(staff)

        StaffSession.objects.create(
            staff=staff,
            token_key=cls._token_key(token),
            ip_address=ip_address or '',
            user_agent=(user_agent or '')[:255],
        )

        Staff.objects.filter(id=staff.id).update(last_login_at=timezone.now())

        return {'success': True, 'token': token, 'staff': staff, 'message': 'Login successful'}

    @classmethod
    def logout(cls, token):
        staff = cls.get_staff_from_token(token)
        if not staff:
            return {'success': False, 'message': 'Invalid token'}

        StaffSession.objects.filter(staff=staff, token_key=cls._token_key(token)).delete()
        return {'success': True, 'message': 'Logged out successfully'}

    @classmethod
    def get_staff_from_token(cls, token):
        return cls._verify_token(token)

    @classmethod
    def _token_key(cls, token):
        # The signature segment is unique per token; the header segment is not.
        return token.rsplit('.', 1)[-1][:32]

    @classmethod
    def _generate_token(cls, staff):
        now = datetime.now(dt_timezone.utc)
        payload = {
            'staff_id': staff.id,
            'email': staff.email,
            'role': staff.role,
            'exp': now + timedelta(days=cls.JWT_EXPIRY_DAYS),
            'iat': now,
        }
        return jwt.encode(payload, cls.JWT_SECRET, algorithm=cls.JWT_ALGORITHM)

    @classmethod
    def _verify_token(cls, token):
        if not token:
            return None

        try:
            payload = jwt.decode(token, cls.JWT_SECRET, algorithms=[cls.JWT_ALGORITHM])
            staff = Staff.objects.get(id=payload['staff_id'], status=Staff.StaffStatus.ACTIVE)
        except (jwt.InvalidTokenError, KeyError, Staff.DoesNotExist):
            return None

        if not StaffSession.objects.filter(staff=staff, token_key=cls._token_key(token)).exists():
            return None

        return staff
