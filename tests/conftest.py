import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IDENTITY_BACKEND"] = "signed"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from checkout import CheckoutOutcome, get_checkout_provider
from db import get_session
from errors import InvalidInput
from identity import SignedTokenVerifier, get_verifier
from main import app
from models import User

verifier = SignedTokenVerifier("test-secret")


class FakeCheckout:
    """Stands in for Stripe: remembers what was opened, replays outcomes."""

    def __init__(self):
        self.created = []
        self.outcomes = {}

    def create_checkout(self, amount, payer_email, success_url, cancel_url):
        self.created.append({
            "amount": amount,
            "payer_email": payer_email,
            "success_url": success_url,
            "cancel_url": cancel_url,
        })
        return f"https://checkout.test/session/{len(self.created)}"

    def retrieve_outcome(self, session_id):
        if session_id not in self.outcomes:
            raise InvalidInput("No such checkout session")
        return self.outcomes[session_id]

    def pay(self, session_id, transaction_id, amount, email="payer@example.com"):
        self.outcomes[session_id] = CheckoutOutcome(
            paid=True, transaction_id=transaction_id, amount=amount, payer_email=email,
        )


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def checkout():
    return FakeCheckout()


@pytest.fixture
def client(session, checkout):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_verifier] = lambda: verifier
    app.dependency_overrides[get_checkout_provider] = lambda: checkout
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    def _auth(email):
        return {"Authorization": f"Bearer {verifier.issue(email)}"}
    return _auth


@pytest.fixture
def make_user(session):
    def _make(email, role="donor", status="active", name=None):
        session.add(User(email=email, role=role, status=status, name=name))
        session.commit()
        return email
    return _make


@pytest.fixture
def new_request(client, auth):
    def _new(email, **fields):
        body = {
            "recipient_name": "Rahim",
            "blood_group": "A+",
            "district": "Dhaka",
            "upazila": "Savar",
            "hospital": "Enam Medical",
        }
        body.update(fields)
        resp = client.post("/requests", json=body, headers=auth(email))
        assert resp.status_code == 200, resp.text
        return resp.json()
    return _new
