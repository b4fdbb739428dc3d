from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

SHELL = "/bin/bash"


@dataclass(frozen=True)
class ExecutionRequest:
    argv: Tuple[str, ...]
    timeout: float
    max_output_bytes: int
    cwd: Optional[Path] = None
    secrets: Tuple[str, ...] = field(default=(), repr=False)
    # credential-shaped values (token=..., key blocks) are masked only when set
    mask_patterns: bool = False

    @classmethod
    def shell(cls, command: str, **kwargs) -> "ExecutionRequest":
        """Wrap a fixed command string in the one interpreter we allow."""
        return cls(argv=(SHELL, "-c", command), **kwargs)


@dataclass(frozen=True)
class ExecutionSuccess:
    stdout: str
    stderr: str

    ok = True


@dataclass(frozen=True)
class ExecutionTimeout:
    timeout: float

    ok = False

    @property
    def reason(self) -> str:
        return "Command timeout"


@dataclass(frozen=True)
class ExecutionFailure:
    reason: str
    stderr: str = ""
    exit_code: Optional[int] = None
    signal: Optional[int] = None

    ok = False


ExecutionResult = Union[ExecutionSuccess, ExecutionTimeout, ExecutionFailure]
