from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, List, Literal, Optional

Outcome = Literal["succeeded", "failed", "timed_out", "error"]


@dataclass(frozen=True)
class DeployLogEntry:
    started_at: str
    finished_at: str
    outcome: Outcome
    output: str = ""
    errors: str = ""
    exit_code: Optional[int] = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.outcome == "succeeded"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        return data


class DeployHistory:
    """Bounded in-memory record of recent deploy attempts. Not persisted."""

    def __init__(self, *, size: int = 20) -> None:
        self._lock = threading.Lock()
        self._entries: Deque[DeployLogEntry] = deque(maxlen=size)

    def record(self, entry: DeployLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> List[DeployLogEntry]:
        with self._lock:
            return list(self._entries)
