import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

ROLES = ("donor", "volunteer", "admin")
USER_STATUSES = ("active", "blocked")
REQUEST_STATUSES = ("pending", "inprogress", "done", "canceled")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_request_id() -> str:
    return uuid.uuid4().hex


class User(SQLModel, table=True):
    email: str = Field(primary_key=True)
    name: Optional[str] = None
    avatar: Optional[str] = None
    blood_group: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None

    role: str = "donor"  # donor | volunteer | admin
    status: str = "active"  # active | blocked
    created_at: datetime = Field(default_factory=utcnow)


class DonationRequest(SQLModel, table=True):
    id: str = Field(default_factory=new_request_id, primary_key=True)
    requester_email: str = Field(index=True)
    requester_name: Optional[str] = None

    recipient_name: Optional[str] = None
    blood_group: str = Field(index=True)
    district: str = Field(index=True)
    upazila: str = Field(index=True)
    hospital: Optional[str] = None
    address: Optional[str] = None
    donation_date: Optional[str] = None
    donation_time: Optional[str] = None
    message: Optional[str] = None

    status: str = Field(default="pending", index=True)
    donor_email: Optional[str] = None
    donor_name: Optional[str] = None
    donated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: str = Field(unique=True, index=True)
    amount: float
    donor_email: Optional[str] = None
    status: str = "paid"
    paid_at: datetime = Field(default_factory=utcnow)
