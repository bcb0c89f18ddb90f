import json

import pytest
from django.urls import reverse

from staff.models import StaffSession
from staff.services import AuthService, StaffService

pytestmark = pytest.mark.django_db


def post_json(client, url, data, **extra):
    return client.post(url, data=json.dumps(data), content_type="application/json", **extra)


# ---------------------------------------------------------------------------
# AuthService
# ---------------------------------------------------------------------------

def test_login_issues_token_bound_to_session(staff, staff_password):
    result = AuthService.login(staff.email, staff_password, ip_address="10.0.0.5")

    assert result["success"] is True
    assert AuthService.get_staff_from_token(result["token"]) == staff
    session = StaffSession.objects.get(staff=staff)
    assert session.ip_address == "10.0.0.5"

    staff.refresh_from_db()
    assert staff.last_login_at is not None


def test_login_email_is_case_insensitive(staff, staff_password):
    assert AuthService.login(staff.email.upper(), staff_password)["success"] is True


def test_login_wrong_password(staff):
    result = AuthService.login(staff.email, "wrong-password")

    assert result["success"] is False
    assert result["token"] is None
    assert not StaffSession.objects.exists()


def test_login_unknown_email(staff_password):
    assert AuthService.login("nobody@repairdesk.test", staff_password)["message"] == "Invalid credentials"


def test_suspended_staff_cannot_log_in(suspended_staff, staff_password):
    assert AuthService.login(suspended_staff.email, staff_password)["message"] == "Account suspended"


def test_logout_invalidates_token(staff_token):
    assert AuthService.logout(staff_token)["success"] is True
    assert AuthService.get_staff_from_token(staff_token) is None


def test_suspension_revokes_sessions(staff, staff_token):
    StaffService.set_status(staff.id, "SUSPENDED")

    assert AuthService.get_staff_from_token(staff_token) is None
    assert not StaffSession.objects.filter(staff=staff).exists()


@pytest.mark.parametrize("token", [None, "", "abc.def.ghi"])
def test_invalid_tokens_resolve_to_nobody(token):
    assert AuthService.get_staff_from_token(token) is None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def test_login_endpoint(client, staff, staff_password):
    response = post_json(client, reverse("staff:login"), {"email": staff.email, "password": staff_password})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["staff"]["email"] == staff.email
    assert data["token"]


def test_login_endpoint_missing_fields(client):
    response = post_json(client, reverse("staff:login"), {"email": "tech@repairdesk.test"})

    assert response.status_code == 400
    assert "password" in response.json()["details"]


def test_login_endpoint_bad_credentials(client, staff):
    response = post_json(client, reverse("staff:login"), {"email": staff.email, "password": "nope"})
    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get(reverse("staff:me")).status_code == 401


def test_me_and_logout(auth_client, staff):
    response = auth_client.get(reverse("staff:me"))
    assert response.json()["data"]["id"] == staff.id

    assert auth_client.post(reverse("staff:logout")).status_code == 200
    assert auth_client.get(reverse("staff:me")).status_code == 401
