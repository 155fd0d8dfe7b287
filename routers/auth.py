import logging
from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlmodel import Session

from db import SessionDep
from errors import Forbidden, Unauthorized
from identity import get_verifier
from models import User

logger = logging.getLogger(__name__)


def get_caller_email(
    authorization: Optional[str] = Header(default=None),
    verifier=Depends(get_verifier),
) -> str:
    """
    Reads 'Authorization: Bearer <token>' and returns the verified email.
    Raises 401 if the header is missing or the token is rejected.
    """
    if not authorization:
        raise Unauthorized("Unauthorized")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Unauthorized")

    return verifier.verify(token.strip())


CallerEmailDep = Annotated[str, Depends(get_caller_email)]


def resolve_caller(session: Session, email: str) -> Optional[User]:
    """Fresh role/status lookup; nothing is cached between requests."""
    return session.get(User, email)


def require_role(*roles: str):
    """
    Build a dependency that admits only callers holding one of `roles`.
    Blocked callers are rejected unless their role is admin.
    """

    def _guard(session: SessionDep, email: CallerEmailDep) -> User:
        user = resolve_caller(session, email)
        if user is None:
            logger.info("Rejected %s: no stored user", email)
            raise Forbidden("Forbidden access")
        if user.role not in roles:
            logger.info("Rejected %s: role %s not in %s", email, user.role, roles)
            raise Forbidden("Forbidden access")
        if user.status == "blocked" and user.role != "admin":
            logger.info("Rejected %s: blocked %s", email, user.role)
            raise Forbidden("Your account is blocked")
        return user

    return _guard


DonorDep = Annotated[User, Depends(require_role("donor"))]
VolunteerDep = Annotated[User, Depends(require_role("volunteer"))]
AdminDep = Annotated[User, Depends(require_role("admin"))]
StaffDep = Annotated[User, Depends(require_role("admin", "volunteer"))]
