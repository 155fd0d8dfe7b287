from fastapi import APIRouter

from db import SessionDep
from errors import NotFound
from models import User
from schemas import ProfileUpdate, UserRead
from .auth import CallerEmailDep

router = APIRouter(tags=["profile"])


@router.get("/profile", response_model=UserRead)
def read_profile(session: SessionDep, email: CallerEmailDep):
    user = session.get(User, email)
    if user is None:
        raise NotFound("Not found")
    return user


@router.patch("/profile", response_model=UserRead)
def update_profile(profile_in: ProfileUpdate, session: SessionDep, email: CallerEmailDep):
    """
    Edit your own profile. Email, role and status are not editable here.
    """
    user = session.get(User, email)
    if user is None:
        raise NotFound("Not found")

    for field, value in profile_in.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    session.add(user)
    session.commit()
    session.refresh(user)
    return user
