from __future__ import annotations

import logging
import secrets
from typing import Optional

from .errors import ConfigError, MalformedAuth, Unauthenticated, Unauthorized

LOGGER = logging.getLogger(__name__)

_SCHEME = "Bearer"


def constant_time_equals(presented: str, expected: str) -> bool:
    """
    Compare two tokens without leaking the position of the first mismatch.

    compare_digest scans the full length of its inputs; a length mismatch
    only reveals the length, which is not secret.
    """
    return secrets.compare_digest(
        presented.encode("utf-8"), expected.encode("utf-8")
    )


class TokenGuard:
    """
    Bearer-token gate for every privileged route.

    The credential is injected at construction so tests never need to
    touch the process environment.
    """

    def __init__(self, token: Optional[str]) -> None:
        self._token = token or None

    @property
    def configured(self) -> bool:
        return self._token is not None

    def authorize(self, header: Optional[str], origin: Optional[str] = None) -> None:
        if self._token is None:
            LOGGER.error(
                "AGENT_TOKEN not set; rejecting protected request from %s",
                origin or "unknown",
            )
            raise ConfigError("Server misconfigured")

        if not header:
            LOGGER.warning("Missing authorization header from %s", origin or "unknown")
            raise Unauthenticated("Missing authorization header")

        parts = header.split(" ")
        if len(parts) != 2 or parts[0] != _SCHEME:
            LOGGER.warning("Malformed authorization header from %s", origin or "unknown")
            raise MalformedAuth("Invalid authorization format")

        if not constant_time_equals(parts[1], self._token):
            LOGGER.warning("Unauthorized access attempt from %s", origin or "unknown")
            raise Unauthorized("Unauthorized")
