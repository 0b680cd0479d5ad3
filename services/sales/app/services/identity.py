"""Actor identity derived from the bearer credential.

There is no "who am I" endpoint for the sales flows, so the agent id is read from the
``id`` claim of the token the session already holds for authorization.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any, Protocol

from services.sales.app.services.errors import AuthError, MalformedTokenError, MissingClaimError

logger = logging.getLogger(__name__)


def decode_claims(token: str) -> dict[str, Any]:
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise MalformedTokenError(f"Expected 3 token segments, got {len(parts)}")

    segment = parts[1]
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        claims = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise MalformedTokenError(f"Token payload is not base64url JSON: {e}") from e

    if not isinstance(claims, dict):
        raise MalformedTokenError("Token payload is not a JSON object")
    return claims


def resolve_actor_id(token: str) -> str:
    claims = decode_claims(token)
    actor_id = claims.get("id")
    if actor_id is None or str(actor_id).strip() == "":
        raise MissingClaimError("id")
    return str(actor_id)


class CredentialStore(Protocol):
    def get_valid_token(self) -> str | None: ...

    def require_token(self) -> str: ...

    def clear(self) -> None: ...


class InMemoryCredentialStore:
    """Holds one bearer token for the lifetime of a sales session.

    The token is dropped as soon as it is found to be expired or structurally invalid, so a
    later call never resurrects a credential the session already gave up on.
    """

    def __init__(self, token: str | None, *, clock=time.time) -> None:
        self._token = token
        self._clock = clock

    def get_valid_token(self) -> str | None:
        if not self._token:
            return None

        try:
            claims = decode_claims(self._token)
        except MalformedTokenError:
            logger.warning("Stored credential is malformed; clearing it")
            self.clear()
            return None

        if not claims.get("id") or not claims.get("role"):
            logger.warning("Stored credential lacks id/role claims; clearing it")
            self.clear()
            return None

        exp = claims.get("exp")
        if isinstance(exp, (int, float)) and exp <= self._clock():
            logger.info("Stored credential expired; clearing it")
            self.clear()
            return None

        return self._token

    def require_token(self) -> str:
        token = self.get_valid_token()
        if token is None:
            raise AuthError("Authorization token missing or expired. Please sign in again.")
        return token

    def clear(self) -> None:
        self._token = None
