"""
Admin gate: verify a session token and check its email against the allow-list.

Sign-in itself happens with the OAuth provider; the frontend exchanges the
provider's identity for one of these HS256 session tokens. The gate only
has to trust tokens it signed.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

import jwt
from jwt import InvalidTokenError

from council.errors import Unauthorized

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
AUDIENCE = "council-admin"


@dataclass(frozen=True)
class AdminSession:
    email: str
    subject: str
    name: Optional[str] = None


def issue_session_token(
    email: str,
    secret: str,
    *,
    ttl_seconds: int = 7 * 24 * 3600,
    name: Optional[str] = None,
    subject: Optional[str] = None,
) -> str:
    now = int(time.time())
    payload: Dict[str, Any] = {
        "sub": subject or email.lower(),
        "email": email.lower(),
        "aud": AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": secrets.token_hex(8),
    }
    if name:
        payload["name"] = name
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_session_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Decode and validate a session token.

    Raises jwt.InvalidTokenError subclasses on failure.
    """
    payload = jwt.decode(
        token,
        secret,
        algorithms=[ALGORITHM],
        audience=AUDIENCE,
        leeway=5,
        options={"require": ["exp", "iat", "sub"]},
    )
    if not payload.get("email"):
        raise InvalidTokenError("missing_claim:email")
    return payload


class AdminGate:
    """
    Decides whether a caller may use admin endpoints.

    ``allow_list`` is called on every check so edits to the persisted list
    apply without a restart.
    """

    def __init__(self, secret: Optional[str], allow_list: Callable[[], Iterable[str]]):
        self.secret = secret
        self.allow_list = allow_list

    def authenticate(self, token: Optional[str]) -> AdminSession:
        if not self.secret:
            logger.error("SESSION_SECRET is not configured, refusing admin access")
            raise Unauthorized()
        if not token:
            raise Unauthorized()
        try:
            payload = decode_session_token(token, self.secret)
        except InvalidTokenError as exc:
            logger.info("Rejected admin session token: %s", exc)
            raise Unauthorized() from exc

        email = str(payload["email"]).strip().lower()
        if email not in {allowed.lower() for allowed in self.allow_list()}:
            logger.warning("Admin access denied for %s", email)
            raise Unauthorized()
        return AdminSession(email=email, subject=str(payload["sub"]), name=payload.get("name"))
