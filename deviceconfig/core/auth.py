"""
Session token handling.

The management API issues a JWT when a user logs in.  The token is stored
on disk (or handed over through ``$DEVICECONFIG_TOKEN``) and its payload
carries the user's ``id`` and ``username``.  The signature is not checked
here; the API does that on every request.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Any

from ..errors import NotAuthenticated

logger = logging.getLogger("deviceconfig")

TOKEN_ENV = "DEVICECONFIG_TOKEN"


def decode_payload(token: str) -> dict[str, Any]:
    """Return the (unverified) claims of a JWT."""
    try:
        segment = token.split(".")[1]
        padded  = segment + "=" * (-len(segment) % 4)
        claims  = json.loads(base64.urlsafe_b64decode(padded))
    except (IndexError, ValueError, binascii.Error) as e:
        raise NotAuthenticated(f"Malformed session token: {e}") from e
    if not isinstance(claims, dict):
        raise NotAuthenticated("Malformed session token: payload is not an object")
    return claims


class Session:
    """A logged-in user session."""

    def __init__(self, token: str) -> None:
        self.token   = token.strip()
        self._claims = decode_payload(self.token)

    @classmethod
    def load(cls, token_path: str) -> "Session | None":
        """Load the session from ``$DEVICECONFIG_TOKEN`` or *token_path*.

        Returns ``None`` when neither holds a token.
        """
        token = os.environ.get(TOKEN_ENV, "").strip()
        if not token:
            try:
                with open(token_path) as f:
                    token = f.read().strip()
            except FileNotFoundError:
                logger.debug("No session token at %s", token_path)
                return None
        if not token:
            return None
        return cls(token)

    @property
    def user_id(self) -> int:
        try:
            return self._claims["id"]
        except KeyError:
            raise NotAuthenticated("Session token has no user id") from None

    @property
    def username(self) -> str | None:
        return self._claims.get("username")

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
