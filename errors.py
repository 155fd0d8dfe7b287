"""Failure kinds surfaced to API callers.

Every error carries a ``kind`` (the class name) and a human-readable
``detail``; ``main.py`` renders them as ``{"kind": ..., "detail": ...}``.
"""

from fastapi import HTTPException


class ServiceError(HTTPException):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.detail}


class Unauthorized(ServiceError):
    """No credential, or one the identity provider rejected."""

    status_code = 401


class Forbidden(ServiceError):
    """Valid caller, but wrong role or blocked."""

    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class InvalidInput(ServiceError):
    status_code = 400


class Conflict(ServiceError):
    """The entity moved on before our conditional write landed."""

    status_code = 409


class Upstream(ServiceError):
    """Storage or payment provider failed."""

    status_code = 502
