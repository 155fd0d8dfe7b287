import pytest
from sqlmodel import select

from identity import SignedTokenVerifier
from models import DonationRequest

REQUEST_BODY = {"blood_group": "O-", "district": "Dhaka", "upazila": "Mirpur"}


def test_missing_token_is_unauthorized(client):
    resp = client.get("/my-requests")
    assert resp.status_code == 401
    assert resp.json()["kind"] == "Unauthorized"


def test_malformed_header_is_unauthorized(client, auth):
    token = auth("a@example.com")["Authorization"].split(" ")[1]
    resp = client.get("/my-requests", headers={"Authorization": f"Token {token}"})
    assert resp.status_code == 401


def test_token_signed_with_other_secret_is_unauthorized(client):
    forged = SignedTokenVerifier("not-our-secret").issue("admin@example.com")
    resp = client.get("/my-requests", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401
    assert resp.json()["kind"] == "Unauthorized"


@pytest.mark.parametrize(
    "role,status,expected",
    [
        ("donor", "active", 200),
        ("donor", "blocked", 403),
        ("volunteer", "active", 403),
        ("admin", "active", 403),
    ],
)
def test_donor_guard(client, auth, make_user, role, status, expected):
    email = make_user("caller@example.com", role=role, status=status)
    resp = client.post("/requests", json=REQUEST_BODY, headers=auth(email))
    assert resp.status_code == expected
    if expected == 403:
        assert resp.json()["kind"] == "Forbidden"


@pytest.mark.parametrize(
    "role,status,expected",
    [
        ("volunteer", "active", 200),
        ("volunteer", "blocked", 403),
        ("donor", "active", 403),
    ],
)
def test_volunteer_guard(client, auth, make_user, role, status, expected):
    email = make_user("caller@example.com", role=role, status=status)
    resp = client.get("/volunteer/requests", headers=auth(email))
    assert resp.status_code == expected


@pytest.mark.parametrize(
    "role,status,expected",
    [
        ("admin", "active", 200),
        # admins are exempt from the blocked check
        ("admin", "blocked", 200),
        ("volunteer", "active", 403),
        ("donor", "active", 403),
    ],
)
def test_admin_guard(client, auth, make_user, role, status, expected):
    email = make_user("caller@example.com", role=role, status=status)
    resp = client.get("/admin/requests", headers=auth(email))
    assert resp.status_code == expected


def test_unknown_caller_is_forbidden(client, auth):
    resp = client.post("/requests", json=REQUEST_BODY, headers=auth("ghost@example.com"))
    assert resp.status_code == 403


def test_rejected_guard_writes_nothing(client, auth, make_user, session):
    email = make_user("blocked@example.com", status="blocked")
    resp = client.post("/requests", json=REQUEST_BODY, headers=auth(email))
    assert resp.status_code == 403
    assert session.exec(select(DonationRequest)).all() == []


def test_blocking_takes_effect_on_next_call(client, auth, make_user):
    admin = make_user("admin@example.com", role="admin")
    donor = make_user("donor@example.com")

    assert client.post("/requests", json=REQUEST_BODY, headers=auth(donor)).status_code == 200

    resp = client.patch(
        "/users/status",
        json={"email": donor, "status": "blocked"},
        headers=auth(admin),
    )
    assert resp.status_code == 200

    assert client.post("/requests", json=REQUEST_BODY, headers=auth(donor)).status_code == 403

    client.patch("/users/status", json={"email": donor, "status": "active"}, headers=auth(admin))
    assert client.post("/requests", json=REQUEST_BODY, headers=auth(donor)).status_code == 200


def test_blocked_volunteer_keeps_role(client, auth, make_user):
    email = make_user("vol@example.com", role="volunteer", status="blocked")
    resp = client.get(f"/users/role/{email}", headers=auth(email))
    assert resp.status_code == 200
    assert resp.json() == {"role": "volunteer", "status": "blocked"}
