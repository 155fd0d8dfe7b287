"""
Donation request lifecycle.

    pending --claim--> inprogress --owner--> done | canceled

Admins and volunteers may force any status. Every transition is a single
conditional UPDATE/DELETE; the WHERE clause carries the preconditions, so
two concurrent writers can never both win.
"""
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from errors import Conflict, InvalidInput, NotFound
from models import REQUEST_STATUSES, DonationRequest, User, utcnow
from schemas import DonationRequestCreate

logger = logging.getLogger(__name__)

OWNER_FINAL_STATUSES = ("done", "canceled")


def parse_request_id(request_id: str) -> str:
    """Normalise a request id, rejecting anything that is not a UUID."""
    try:
        return uuid.UUID(request_id).hex
    except (ValueError, AttributeError, TypeError):
        raise InvalidInput("Invalid ID")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ==================== Writes ====================

def create_request(session: Session, requester: User, data: DonationRequestCreate) -> DonationRequest:
    req = DonationRequest(
        **data.model_dump(exclude={"requester_name"}),
        requester_email=requester.email.strip(),
        requester_name=data.requester_name or requester.name,
        status="pending",
    )
    session.add(req)
    session.commit()
    session.refresh(req)
    logger.info("Request %s created by %s", req.id, req.requester_email)
    return req


def claim_request(session: Session, request_id: str, donor_email: str,
                  donor_name: Optional[str] = None) -> DonationRequest:
    """
    Take a pending request. Only one caller can ever win: the status check
    happens inside the UPDATE itself.
    """
    rid = parse_request_id(request_id)
    result = session.exec(
        update(DonationRequest)
        .where(DonationRequest.id == rid, DonationRequest.status == "pending")
        .values(
            status="inprogress",
            donor_email=donor_email.strip(),
            donor_name=donor_name,
            donated_at=utcnow(),
        )
    )
    session.commit()

    if result.rowcount == 0:
        if session.get(DonationRequest, rid) is None:
            raise NotFound("Request not found")
        logger.info("Claim on %s by %s lost: no longer pending", rid, donor_email)
        raise Conflict("Already taken")

    logger.info("Request %s claimed by %s", rid, donor_email)
    return session.get(DonationRequest, rid)


def finish_request(session: Session, request_id: str, requester_email: str,
                   status: str) -> DonationRequest:
    """
    Requester closes their own in-progress request.
    Wrong id, wrong owner and wrong state all look the same: NotFound.
    """
    if status not in OWNER_FINAL_STATUSES:
        raise InvalidInput("Invalid status")
    rid = parse_request_id(request_id)

    result = session.exec(
        update(DonationRequest)
        .where(
            DonationRequest.id == rid,
            DonationRequest.requester_email == requester_email.strip(),
            DonationRequest.status == "inprogress",
        )
        .values(status=status)
    )
    session.commit()

    if result.rowcount == 0:
        raise NotFound("Request not found")

    logger.info("Request %s marked %s by requester", rid, status)
    return session.get(DonationRequest, rid)


def override_status(session: Session, request_id: str, status: str, actor: User) -> DonationRequest:
    """Privileged status change with no prior-state check."""
    if status not in REQUEST_STATUSES:
        raise InvalidInput("Invalid status")
    rid = parse_request_id(request_id)

    values = {"status": status}
    if status == "pending":
        # back on the market: drop the previous claim
        values.update(donor_email=None, donor_name=None, donated_at=None)

    result = session.exec(
        update(DonationRequest).where(DonationRequest.id == rid).values(**values)
    )
    session.commit()

    if result.rowcount == 0:
        raise NotFound("Request not found")

    logger.info("Request %s forced to %s by %s %s", rid, status, actor.role, actor.email)
    return session.get(DonationRequest, rid)


def delete_own_request(session: Session, request_id: str, requester_email: str) -> None:
    rid = parse_request_id(request_id)
    result = session.exec(
        delete(DonationRequest).where(
            DonationRequest.id == rid,
            DonationRequest.requester_email == requester_email.strip(),
        )
    )
    session.commit()
    if result.rowcount == 0:
        raise NotFound("Request not found")
    logger.info("Request %s deleted by requester", rid)


def delete_any_request(session: Session, request_id: str, actor: User) -> None:
    rid = parse_request_id(request_id)
    result = session.exec(delete(DonationRequest).where(DonationRequest.id == rid))
    session.commit()
    if result.rowcount == 0:
        raise NotFound("Request not found")
    logger.info("Request %s deleted by admin %s", rid, actor.email)


# ==================== Reads ====================

def get_request(session: Session, request_id: str) -> DonationRequest:
    rid = parse_request_id(request_id)
    req = session.get(DonationRequest, rid)
    if req is None:
        raise NotFound("Request not found")
    return req


def page_requests(session: Session, conditions: list, page: int = 1,
                  size: int = 10) -> Tuple[List[DonationRequest], int]:
    """
    One window of requests, newest first, plus the size of the whole
    filtered set (same `conditions` for both).
    """
    if page < 1 or size < 1:
        raise InvalidInput("page and size must be positive")

    query = (
        select(DonationRequest)
        .where(*conditions)
        .order_by(DonationRequest.created_at.desc(), DonationRequest.id.desc())
        .offset(size * (page - 1))
        .limit(size)
    )
    requests = list(session.exec(query).all())
    total = session.exec(
        select(func.count()).select_from(DonationRequest).where(*conditions)
    ).one()
    return requests, total


def match_conditions(status: Optional[str] = None, blood_group: Optional[str] = None,
                     district: Optional[str] = None, upazila: Optional[str] = None) -> list:
    """Exact-match filters; blank or missing fields match anything."""
    conditions = []
    fields = (
        (DonationRequest.status, status),
        (DonationRequest.blood_group, blood_group),
        (DonationRequest.district, district),
        (DonationRequest.upazila, upazila),
    )
    for column, value in fields:
        value = _clean(value)
        if value is not None:
            conditions.append(column == value)
    return conditions


def search_requests(session: Session, blood_group: Optional[str] = None,
                    district: Optional[str] = None,
                    upazila: Optional[str] = None) -> List[DonationRequest]:
    query = (
        select(DonationRequest)
        .where(*match_conditions(blood_group=blood_group, district=district, upazila=upazila))
        .order_by(DonationRequest.created_at.desc())
    )
    return list(session.exec(query).all())


def list_pending(session: Session) -> List[DonationRequest]:
    query = (
        select(DonationRequest)
        .where(DonationRequest.status == "pending")
        .order_by(DonationRequest.created_at.desc())
    )
    return list(session.exec(query).all())
