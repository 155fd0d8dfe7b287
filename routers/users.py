# routers/users.py
import logging
from typing import List, Optional

from fastapi import APIRouter
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from db import SessionDep
from errors import Conflict, InvalidInput, NotFound
from models import ROLES, USER_STATUSES, User
from schemas import RoleRead, UserCreate, UserRead, UserStatusUpdate
from .auth import AdminDep, CallerEmailDep

router = APIRouter(tags=["users"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=UserRead)
def create_user(user_in: UserCreate, session: SessionDep, email: CallerEmailDep):
    """
    Sign-up. The email comes from the verified token; calling this again
    for an existing account returns the stored record untouched.
    """
    existing = session.get(User, email)
    if existing is not None:
        return existing

    user = User(email=email, **user_in.model_dump(), role="donor", status="active")
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        return session.get(User, email)

    session.refresh(user)
    logger.info("Created user %s", email)
    return user


@router.get("/", response_model=List[UserRead])
def list_users(
    session: SessionDep,
    admin: AdminDep,
    role: Optional[str] = None,
    status: Optional[str] = None,
):
    """
    List all users (admin), optionally filtered by role and status.
    """
    if role is not None and role not in ROLES:
        raise InvalidInput("Unknown role")
    if status is not None and status not in USER_STATUSES:
        raise InvalidInput("Unknown status")

    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    if status is not None:
        query = query.where(User.status == status)
    return session.exec(query.order_by(User.created_at.desc())).all()


@router.get("/role/{email}", response_model=RoleRead)
def get_role(email: str, session: SessionDep, caller: CallerEmailDep):
    user = session.get(User, email.strip())
    if user is None:
        raise NotFound("Not found")
    return RoleRead(role=user.role, status=user.status)


@router.patch("/status", response_model=UserRead)
def set_user_status(update_in: UserStatusUpdate, session: SessionDep, admin: AdminDep):
    user = session.get(User, update_in.email)
    if user is None:
        raise NotFound("User not found")
    user.status = update_in.status
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Admin %s set %s to %s", admin.email, user.email, user.status)
    return user


@router.patch("/{email}/volunteer", response_model=UserRead)
def promote_to_volunteer(email: str, session: SessionDep, admin: AdminDep):
    """Make a donor a volunteer. Admins are never demoted this way."""
    email = email.strip()
    result = session.exec(
        update(User)
        .where(User.email == email, User.role != "admin")
        .values(role="volunteer")
    )
    session.commit()

    if result.rowcount == 0:
        if session.get(User, email) is None:
            raise NotFound("User not found")
        raise Conflict("Admins cannot be made volunteers")

    logger.info("Admin %s promoted %s to volunteer", admin.email, email)
    return session.get(User, email)
