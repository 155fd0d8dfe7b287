"""
Bearer credential verification.

A verifier turns the token from ``Authorization: Bearer <token>`` into the
caller's email. It never touches our own database: role and status are
resolved separately on every request (see ``routers/auth.py``).
"""
import base64
import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

import config
from errors import Unauthorized, Upstream

logger = logging.getLogger(__name__)


class SignedTokenVerifier:
    """
    Tokens signed with our own secret.
    Example payload:
        {"email": "donor@example.com"}
    """

    def __init__(self, secret_key: str, max_age_seconds: int = 60 * 60 * 8):
        self.serializer = URLSafeTimedSerializer(secret_key, salt="bearer")
        self.max_age_seconds = max_age_seconds

    def issue(self, email: str) -> str:
        return self.serializer.dumps({"email": email.strip()})

    def verify(self, token: str) -> str:
        try:
            data = self.serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            raise Unauthorized("Token expired")
        except BadSignature:
            raise Unauthorized("Invalid token")

        email = data.get("email") if isinstance(data, dict) else None
        if not email:
            raise Unauthorized("Token carries no email")
        return email.strip()


class FirebaseVerifier:
    """Firebase ID tokens, checked with the Admin SDK."""

    def __init__(self, service_key_b64: str):
        self.service_key_b64 = service_key_b64
        self._app: Optional[firebase_admin.App] = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            if not self.service_key_b64:
                raise RuntimeError("FB_SERVICE_KEY missing")
            decoded = base64.b64decode(self.service_key_b64).decode("utf-8")
            cred = credentials.Certificate(json.loads(decoded))
            self._app = firebase_admin.initialize_app(cred, name="identity")
        return self._app

    def verify(self, token: str) -> str:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._get_app())
        except firebase_auth.CertificateFetchError as exc:
            logger.error("Could not fetch Firebase certificates: %s", exc)
            raise Upstream("Identity provider unavailable")
        except (ValueError, firebase_auth.InvalidIdTokenError,
                firebase_auth.UserDisabledError) as exc:
            logger.info("Rejected Firebase token: %s", exc)
            raise Unauthorized("Unauthorized")

        email = decoded.get("email")
        if not email:
            raise Unauthorized("Token carries no email")
        return email.strip()


_verifier = None


def get_verifier():
    """Return the process-wide verifier chosen by IDENTITY_BACKEND."""
    global _verifier
    if _verifier is None:
        if config.IDENTITY_BACKEND == "firebase":
            _verifier = FirebaseVerifier(config.FB_SERVICE_KEY)
        else:
            _verifier = SignedTokenVerifier(
                config.TOKEN_SECRET, max_age_seconds=config.TOKEN_MAX_AGE
            )
    return _verifier
