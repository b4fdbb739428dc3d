from __future__ import annotations

from .runner import run, run_command
from .types import (
    ExecutionFailure,
    ExecutionRequest,
    ExecutionResult,
    ExecutionSuccess,
    ExecutionTimeout,
)

__all__ = [
    "ExecutionFailure",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionSuccess",
    "ExecutionTimeout",
    "run",
    "run_command",
]
