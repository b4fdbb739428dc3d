from __future__ import annotations

import re
from typing import Iterable

MASK = "********"

_INLINE_VALUE_PATTERNS = [
    re.compile(
        r"(?i)((?:password|passwd|passphrase|secret|token|apikey|api_key|access_key|private_key)\s*[:=]\s*)([^\s]+)"
    ),
    re.compile(r"(?i)((?:authorization:\s*bearer\s+))([^\s]+)"),
    re.compile(r"(?i)((?:--password\s+))([^\s]+)"),
    re.compile(r"(?i)((?:--token\s+))([^\s]+)"),
]

_PRIVATE_KEY_BLOCK = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----",
    re.DOTALL,
)


def mask_secrets(text: str, secrets: Iterable[str], *, patterns: bool = True) -> str:
    """
    Redact known secret values from captured command output, and with
    ``patterns`` also common credential shapes.
    """
    if not text:
        return text

    redacted = text

    secret_set = {s for s in secrets if s}
    for secret in sorted(secret_set, key=len, reverse=True):
        if secret in redacted:
            redacted = redacted.replace(secret, MASK)

    if not patterns:
        return redacted

    if _PRIVATE_KEY_BLOCK.search(redacted):
        redacted = _PRIVATE_KEY_BLOCK.sub(MASK, redacted)

    for pattern in _INLINE_VALUE_PATTERNS:
        redacted = pattern.sub(lambda m: f"{m.group(1)}{MASK}", redacted)

    return redacted
