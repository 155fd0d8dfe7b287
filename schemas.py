from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from models import DonationRequest, Payment


class UserCreate(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    blood_group: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None


class UserRead(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    avatar: Optional[str] = None
    blood_group: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None
    role: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleRead(BaseModel):
    role: str
    status: str


class ProfileUpdate(BaseModel):
    """Self-service profile fields. Identity, role and status are dropped."""

    name: Optional[str] = None
    avatar: Optional[str] = None
    blood_group: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class UserStatusUpdate(BaseModel):
    email: EmailStr
    status: str = Field(pattern="^(active|blocked)$")


class DonationRequestCreate(BaseModel):
    requester_name: Optional[str] = None
    recipient_name: Optional[str] = None
    blood_group: str = Field(min_length=1)
    district: str = Field(min_length=1)
    upazila: str = Field(min_length=1)
    hospital: Optional[str] = None
    address: Optional[str] = None
    donation_date: Optional[str] = None
    donation_time: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class ClaimData(BaseModel):
    donor_name: Optional[str] = None


class OwnerStatusUpdate(BaseModel):
    status: str = Field(pattern="^(done|canceled)$")


class OverrideStatusUpdate(BaseModel):
    status: str = Field(pattern="^(pending|inprogress|done|canceled)$")


class RequestPage(BaseModel):
    requests: List[DonationRequest]
    total: int


class CheckoutCreate(BaseModel):
    donate_amount: int = Field(gt=0)
    donor_email: Optional[EmailStr] = None


class CheckoutRead(BaseModel):
    url: str


class PaymentResult(BaseModel):
    success: bool
    transaction_id: Optional[str] = None


class PaymentPage(BaseModel):
    payments: List[Payment]
    total: int


class DashboardStats(BaseModel):
    total_users: int
    total_requests: int
    total_funding: float
