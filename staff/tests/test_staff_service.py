import json

import pytest
from django.urls import reverse

from staff.models import Staff
from staff.services import AuthService, StaffService

pytestmark = pytest.mark.django_db


def test_create_staff_normalizes_email():
    result = StaffService.create_staff("Rita", "Repair", "Rita@RepairDesk.test", "hunter22")

    assert result["success"] is True
    assert Staff.objects.get(id=result["staff"]["id"]).email == "rita@repairdesk.test"


@pytest.mark.parametrize("kwargs, message", [
    ({"first_name": ""}, "First name is required"),
    ({"email": "not-an-email"}, "A valid email is required"),
    ({"password": "123"}, "Password must be at least 6 characters"),
    ({"role": "OWNER"}, "Invalid role"),
])
def test_create_staff_validation(kwargs, message):
    params = {"first_name": "Rita", "last_name": "Repair", "email": "rita@repairdesk.test", "password": "hunter22"}
    params.update(kwargs)

    result = StaffService.create_staff(**params)

    assert result["success"] is False
    assert result["message"].startswith(message)


def test_create_staff_duplicate_email(staff):
    result = StaffService.create_staff("Other", "Person", staff.email.upper(), "hunter22")
    assert result["error_code"] == "DUPLICATE_EMAIL"


def test_get_active_only_resolves_active_staff(staff, suspended_staff):
    assert StaffService.get_active(staff.id) == staff
    assert StaffService.get_active(suspended_staff.id) is None
    assert StaffService.get_active(None) is None
    assert StaffService.get_active("abc") is None
    assert StaffService.get_active(999999) is None


def test_get_all_staff_filters(staff, manager, suspended_staff):
    result = StaffService.get_all_staff(status="SUSPENDED")
    assert [s["id"] for s in result["staff"]] == [suspended_staff.id]

    result = StaffService.get_all_staff(role="MANAGER")
    assert result["pagination"]["total_staff"] == 1


def test_set_status_rejects_unknown_status(staff):
    assert StaffService.set_status(staff.id, "RETIRED")["error_code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def test_technician_cannot_create_staff(auth_client):
    response = auth_client.post(
        reverse("staff:staff-list"),
        data=json.dumps({"first_name": "New", "last_name": "Hire", "email": "new@repairdesk.test", "password": "hunter22"}),
        content_type="application/json",
    )
    assert response.status_code == 403


def test_manager_creates_staff_and_suspends(client, manager, staff, staff_password):
    token = AuthService.login(manager.email, staff_password)["token"]
    client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {token}"

    response = client.post(
        reverse("staff:staff-list"),
        data=json.dumps({"first_name": "New", "last_name": "Hire", "email": "new@repairdesk.test", "password": "hunter22"}),
        content_type="application/json",
    )
    assert response.status_code == 201

    response = client.post(
        reverse("staff:staff-status", args=[staff.id]),
        data=json.dumps({"status": "SUSPENDED"}),
        content_type="application/json",
    )
    assert response.status_code == 200
    assert Staff.objects.get(id=staff.id).status == "SUSPENDED"


def test_get_staff_not_found(auth_client):
    assert auth_client.get(reverse("staff:staff-detail", args=[999999])).status_code == 404
