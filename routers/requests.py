from typing import List, Optional

from fastapi import APIRouter, Query, Response

import config
import lifecycle
from db import SessionDep
from models import DonationRequest, User
from schemas import (
    ClaimData,
    DonationRequestCreate,
    OverrideStatusUpdate,
    OwnerStatusUpdate,
    RequestPage,
)
from .auth import AdminDep, CallerEmailDep, DonorDep, StaffDep, VolunteerDep

router = APIRouter(tags=["requests"])

PAGE_QUERY = Query(1, ge=1)
SIZE_QUERY = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE)


# ==================== Public reads ====================

@router.get("/search-requests", response_model=List[DonationRequest])
def search_requests(
    session: SessionDep,
    blood_group: Optional[str] = None,
    district: Optional[str] = None,
    upazila: Optional[str] = None,
):
    """
    Exact match on any of blood group / district / upazila.
    Missing fields match everything.
    """
    return lifecycle.search_requests(session, blood_group, district, upazila)


@router.get("/donation-requests", response_model=List[DonationRequest])
def list_pending_requests(session: SessionDep):
    return lifecycle.list_pending(session)


# ==================== Authenticated ====================

@router.get("/donation-requests/{request_id}", response_model=DonationRequest)
def get_request(request_id: str, session: SessionDep, caller: CallerEmailDep):
    return lifecycle.get_request(session, request_id)


@router.patch("/donation-requests/{request_id}", response_model=DonationRequest)
def claim_request(
    request_id: str,
    session: SessionDep,
    email: CallerEmailDep,
    claim: Optional[ClaimData] = None,
):
    """
    Take a pending request as its donor. A second claim gets 409.
    """
    donor_name = claim.donor_name if claim else None
    if not donor_name:
        user = session.get(User, email)
        donor_name = user.name if user else None
    return lifecycle.claim_request(session, request_id, email, donor_name)


@router.post("/requests", response_model=DonationRequest)
def create_request(request_data: DonationRequestCreate, session: SessionDep, donor: DonorDep):
    return lifecycle.create_request(session, donor, request_data)


@router.get("/my-requests", response_model=RequestPage)
def my_requests(
    session: SessionDep,
    email: CallerEmailDep,
    page: int = PAGE_QUERY,
    size: int = SIZE_QUERY,
):
    conditions = [DonationRequest.requester_email == email]
    requests, total = lifecycle.page_requests(session, conditions, page, size)
    return RequestPage(requests=requests, total=total)


@router.patch("/requests/status/{request_id}", response_model=DonationRequest)
def finish_request(
    request_id: str,
    update: OwnerStatusUpdate,
    session: SessionDep,
    email: CallerEmailDep,
):
    """
    Requester marks their in-progress request done or canceled.
    Anything else (not yours, not in progress, no such id) is a 404.
    """
    return lifecycle.finish_request(session, request_id, email, update.status)


@router.delete("/requests/{request_id}", status_code=204)
def delete_own_request(request_id: str, session: SessionDep, email: CallerEmailDep):
    lifecycle.delete_own_request(session, request_id, email)
    return Response(status_code=204)


# ==================== Privileged ====================

@router.patch("/requests/{request_id}/status", response_model=DonationRequest)
def override_request_status(
    request_id: str,
    update: OverrideStatusUpdate,
    session: SessionDep,
    staff: StaffDep,
):
    return lifecycle.override_status(session, request_id, update.status, staff)


@router.get("/admin/requests", response_model=RequestPage)
def admin_requests(
    session: SessionDep,
    admin: AdminDep,
    status: Optional[str] = None,
    page: int = PAGE_QUERY,
    size: int = SIZE_QUERY,
):
    conditions = lifecycle.match_conditions(status=status)
    requests, total = lifecycle.page_requests(session, conditions, page, size)
    return RequestPage(requests=requests, total=total)


@router.delete("/admin/requests/{request_id}", status_code=204)
def admin_delete_request(request_id: str, session: SessionDep, admin: AdminDep):
    lifecycle.delete_any_request(session, request_id, admin)
    return Response(status_code=204)


@router.get("/volunteer/requests", response_model=RequestPage)
def volunteer_requests(
    session: SessionDep,
    volunteer: VolunteerDep,
    status: Optional[str] = None,
    blood_group: Optional[str] = None,
    district: Optional[str] = None,
    upazila: Optional[str] = None,
    page: int = PAGE_QUERY,
    size: int = SIZE_QUERY,
):
    conditions = lifecycle.match_conditions(status, blood_group, district, upazila)
    requests, total = lifecycle.page_requests(session, conditions, page, size)
    return RequestPage(requests=requests, total=total)
