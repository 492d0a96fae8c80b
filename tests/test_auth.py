import pytest

from services import auth_service


@pytest.fixture()
def accounts(fake_db):
    fake_db.accounts["owner@example.com"] = {"uid": "u1", "password": "pw"}
    fake_db.accounts["clerk@example.com"] = {"uid": "u2", "password": "pw"}
    fake_db.accounts["ghost@example.com"] = {"uid": "u3", "password": "pw"}
    fake_db.seed(
        "users",
        {"id": "u1", "role": "Owner", "name": "Kiran", "twoFactorEnabled": True, "loginCount": 4},
        {"id": "u2", "role": "staff"},
    )
    return fake_db


@pytest.mark.parametrize("role, allowed", [("admin", True), (" Manager ", True), ("staff", False), (None, False)])
def test_is_allowed_role(role, allowed):
    assert auth_service.is_allowed_role(role) is allowed


def test_sign_in_allowed_role(accounts, auth_client):
    ok, msg, user = auth_service.sign_in("owner@example.com", "pw")

    assert ok, msg
    assert (user.uid, user.role, user.display_name) == ("u1", "owner", "Kiran")
    assert user.two_factor_enabled
    assert user.login_count == 5
    stored = accounts.tables["users"][0]
    assert stored["loginCount"] == 5 and stored["lastLogin"] > 0


def test_sign_in_rejects_other_roles(accounts, auth_client):
    ok, msg, user = auth_service.sign_in("clerk@example.com", "pw")

    assert (ok, user) == (False, None)
    assert msg == "Access denied. Insufficient permissions."


def test_sign_in_without_profile(accounts, auth_client):
    ok, msg, _ = auth_service.sign_in("ghost@example.com", "pw")
    assert not ok
    assert "profile not found" in msg


@pytest.mark.parametrize("email", ["owner@example.com", "clerk@example.com", "ghost@example.com"])
def test_sign_in_never_touches_shared_client_auth(accounts, auth_client, email):
    auth_service.sign_in(email, "pw")

    assert accounts.auth.signed_out == 0
    assert auth_client.auth.signed_out == 1
    assert ("users", "select") in accounts.calls
    assert auth_client.calls == []


def test_sign_out_is_per_session(accounts):
    assert auth_service.sign_out("owner@example.com") == (True, "Signed out", None)
    assert accounts.auth.signed_out == 0


def test_sign_in_bad_credentials(accounts, auth_client):
    assert auth_service.sign_in("owner@example.com", "wrong") == (False, "Invalid email or password", None)
    assert auth_service.sign_in("", "pw")[1] == "Email and password are required"


def test_login_bookkeeping_failure_does_not_block(accounts, auth_client, monkeypatch):
    monkeypatch.setattr(auth_service.data_integrator, "update_row", lambda *a, **k: (False, "boom", None))
    ok, _, user = auth_service.sign_in("owner@example.com", "pw")
    assert ok and user.uid == "u1"


def test_verify_two_factor():
    assert auth_service.verify_two_factor(" 123456 ", "123456") == (True, "Verified")
    assert auth_service.verify_two_factor("000000", "123456")[0] is False
    assert auth_service.verify_two_factor("123456", None)[0] is False
