from __future__ import annotations

import re
from typing import NewType, Optional, Union

from .errors import RejectedInput

Identifier = NewType("Identifier", str)

# fullmatch so a trailing newline cannot slip through the way `$` allows
_IDENTIFIER = re.compile(r"[A-Za-z0-9_-]+")
_DECIMAL = re.compile(r"[+-]?[0-9]+")

MIN_LINES = 1
MAX_LINES = 10000
DEFAULT_LINES = 100


def validate_identifier(value: object) -> Identifier:
    if not isinstance(value, str) or not _IDENTIFIER.fullmatch(value):
        raise RejectedInput("Invalid container name")
    return Identifier(value)


def validate_line_count(
    raw: Optional[Union[str, int]], default: int = DEFAULT_LINES
) -> int:
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise RejectedInput(f"Invalid line count ({MIN_LINES}-{MAX_LINES})")
    if isinstance(raw, int):
        count = raw
    else:
        text = str(raw).strip()
        if not _DECIMAL.fullmatch(text):
            raise RejectedInput(f"Invalid line count ({MIN_LINES}-{MAX_LINES})")
        count = int(text, 10)
    if count < MIN_LINES or count > MAX_LINES:
        raise RejectedInput(f"Invalid line count ({MIN_LINES}-{MAX_LINES})")
    return count
