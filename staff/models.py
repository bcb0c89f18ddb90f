"""
Staff identities used by the dashboard and attributed in stock audit records.
"""

import uuid

from django.db import models


class Staff(models.Model):
    class RoleChoices(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        MANAGER = "MANAGER", "Manager"
        TECHNICIAN = "TECHNICIAN", "Technician"
        CASHIER = "CASHIER", "Cashier"

    class StaffStatus(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        SUSPENDED = "SUSPENDED", "Suspended"

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=128)

    role = models.CharField(
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.TECHNICIAN
    )

    status = models.CharField(
        max_length=20,
        choices=StaffStatus.choices,
        default=StaffStatus.ACTIVE
    )

    last_login_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["first_name", "last_name"]
        verbose_name_plural = "staff"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self):
        return self.status == self.StaffStatus.ACTIVE

    def __str__(self):
        return self.full_name or self.email


class StaffSession(models.Model):
    """A bearer token is honoured only while its session row exists."""
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="sessions")
    token_key = models.CharField(max_length=32, db_index=True)
    ip_address = models.CharField(max_length=45, blank=True, default="")
    user_agent = models.CharField(max_length=255, blank=True, default="")
    last_activity = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.staff} @ {self.ip_address or 'unknown'}"
