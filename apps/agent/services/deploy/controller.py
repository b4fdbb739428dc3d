from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from services.errors import AlreadyInProgress, ExecutionError, RateLimited
from services.executor import (
    ExecutionFailure,
    ExecutionRequest,
    ExecutionResult,
    ExecutionSuccess,
    ExecutionTimeout,
    run_command,
)
from services.executor.types import SHELL
from services.util import utc_iso

from .history import DeployHistory, DeployLogEntry

LOGGER = logging.getLogger(__name__)

DEPLOY_COOLDOWN_SECONDS = 60.0
DEPLOY_TIMEOUT_SECONDS = 300.0
DEPLOY_MAX_OUTPUT_BYTES = 2 * 1024 * 1024


@dataclass(frozen=True)
class DeployStatus:
    in_progress: bool
    last_started_at: Optional[str]
    can_deploy_now: bool


class DeployController:
    """
    Single-flight, rate-limited runner for the deployment script.

    State transitions happen under ``_lock``; the lock is released while the
    script runs and ``_in_progress`` keeps every other trigger out until the
    attempt finishes.
    """

    def __init__(
        self,
        script: Path,
        *,
        runner: Callable[[ExecutionRequest], ExecutionResult] = run_command,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        cooldown: float = DEPLOY_COOLDOWN_SECONDS,
        timeout: float = DEPLOY_TIMEOUT_SECONDS,
        max_output_bytes: int = DEPLOY_MAX_OUTPUT_BYTES,
        secrets: Iterable[str] = (),
        history: Optional[DeployHistory] = None,
    ) -> None:
        self._script = Path(script)
        self._runner = runner
        self._clock = clock
        self._wall_clock = wall_clock
        self._cooldown = cooldown
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes
        self._secrets = tuple(s for s in secrets if s)
        self._history = history or DeployHistory()

        self._lock = threading.Lock()
        self._in_progress = False
        self._last_started_at: Optional[float] = None
        self._last_started_wall: Optional[float] = None

    def _acquire(self) -> Tuple[float, float]:
        with self._lock:
            # read under the lock so elapsed can never go negative
            now = self._clock()
            if self._in_progress:
                raise AlreadyInProgress()
            if self._last_started_at is not None:
                elapsed = now - self._last_started_at
                if elapsed < self._cooldown:
                    raise RateLimited(self._retry_after(elapsed))
            self._in_progress = True
            self._last_started_at = now
            self._last_started_wall = self._wall_clock()
            return now, self._last_started_wall

    def _retry_after(self, elapsed: float) -> int:
        remaining = math.ceil(self._cooldown - elapsed)
        return max(1, min(remaining, math.ceil(self._cooldown)))

    def _release(self) -> None:
        with self._lock:
            self._in_progress = False

    def _request(self) -> ExecutionRequest:
        return ExecutionRequest(
            argv=(SHELL, str(self._script)),
            timeout=self._timeout,
            max_output_bytes=self._max_output_bytes,
            secrets=self._secrets,
            mask_patterns=True,
        )

    def trigger(self) -> DeployLogEntry:
        started, started_wall = self._acquire()
        try:
            started_at = utc_iso(started_wall)
            LOGGER.info("Starting deployment: %s", self._script)
            try:
                result = self._runner(self._request())
            except Exception as exc:
                LOGGER.exception("Exception during deployment")
                self._history.record(
                    DeployLogEntry(
                        started_at=started_at,
                        finished_at=utc_iso(),
                        outcome="error",
                        errors=str(exc),
                        duration_seconds=round(self._clock() - started, 3),
                    )
                )
                raise ExecutionError(f"Deployment crashed: {exc}") from exc

            entry = self._entry_for(result, started_at, self._clock() - started)
            self._history.record(entry)
            if entry.success:
                LOGGER.info("Deployment completed successfully")
            else:
                LOGGER.error("Deployment %s: %s", entry.outcome, entry.errors.strip())
            return entry
        finally:
            self._release()

    def _entry_for(
        self, result: ExecutionResult, started_at: str, duration: float
    ) -> DeployLogEntry:
        common = dict(
            started_at=started_at,
            finished_at=utc_iso(),
            duration_seconds=round(duration, 3),
        )
        if isinstance(result, ExecutionSuccess):
            return DeployLogEntry(
                outcome="succeeded", output=result.stdout, errors=result.stderr, **common
            )
        if isinstance(result, ExecutionTimeout):
            return DeployLogEntry(outcome="timed_out", errors=result.reason, **common)
        if isinstance(result, ExecutionFailure):
            errors = result.stderr or result.reason
            return DeployLogEntry(
                outcome="failed", errors=errors, exit_code=result.exit_code, **common
            )
        raise TypeError(f"unexpected execution result: {result!r}")

    def status(self) -> DeployStatus:
        with self._lock:
            now = self._clock()
            in_progress = self._in_progress
            last = self._last_started_at
            last_wall = self._last_started_wall
        cooled = last is None or (now - last) >= self._cooldown
        return DeployStatus(
            in_progress=in_progress,
            last_started_at=utc_iso(last_wall) if last_wall is not None else None,
            can_deploy_now=not in_progress and cooled,
        )

    def history(self) -> List[DeployLogEntry]:
        return self._history.entries()
