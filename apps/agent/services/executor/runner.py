from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
from typing import Callable, Dict, IO, Optional, Sequence, Union

from .secrets import mask_secrets
from .types import (
    ExecutionFailure,
    ExecutionRequest,
    ExecutionResult,
    ExecutionSuccess,
    ExecutionTimeout,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024

# Children never see the agent's own credential.
_SCRUBBED_ENV = ("AGENT_TOKEN",)
_READER_JOIN_TIMEOUT = 5.0


def runner_env() -> Dict[str, str]:
    env = dict(os.environ)
    for name in _SCRUBBED_ENV:
        env.pop(name, None)
    return env


def kill_process_group(pid: Optional[int]) -> None:
    if not isinstance(pid, int) or pid <= 0:
        return
    try:
        os.killpg(pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        # already gone
        return


class _OutputBudget:
    """Byte budget shared by the stdout and stderr readers of one process."""

    def __init__(self, limit: int, on_exceeded: Callable[[], None]) -> None:
        self._lock = threading.Lock()
        self._limit = limit
        self._used = 0
        self._on_exceeded = on_exceeded
        self.exceeded = False

    def take(self, buf: bytearray, chunk: bytes) -> None:
        fire = False
        with self._lock:
            if self.exceeded:
                return
            self._used += len(chunk)
            if self._used > self._limit:
                self.exceeded = True
                fire = True
            else:
                buf.extend(chunk)
        if fire:
            self._on_exceeded()

    def snapshot(self, buf: bytearray) -> bytes:
        # a reader left behind by a lingering descendant may still be appending
        with self._lock:
            return bytes(buf)


def _drain(stream: IO[bytes], buf: bytearray, budget: _OutputBudget) -> None:
    fd = stream.fileno()
    try:
        while True:
            chunk = os.read(fd, 4096)
            if not chunk:
                break
            budget.take(buf, chunk)
    finally:
        stream.close()


def _decode(raw: bytes, request: ExecutionRequest) -> str:
    return mask_secrets(
        raw.decode("utf-8", errors="replace"),
        request.secrets,
        patterns=request.mask_patterns,
    )


def _display(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(request: ExecutionRequest) -> ExecutionResult:
    """
    Run one command to completion inside its own process group.

    The caller is responsible for only handing over fixed literals and
    validated identifiers; nothing here sanitizes arguments.
    """
    cmd = _display(request.argv)
    LOGGER.debug("exec: %s (timeout=%ss)", cmd, request.timeout)

    try:
        proc = subprocess.Popen(
            list(request.argv),
            cwd=str(request.cwd) if request.cwd else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=runner_env(),
            start_new_session=True,  # new process group/session
        )
    except OSError as exc:
        LOGGER.warning("exec failed to start: %s: %s", cmd, exc)
        return ExecutionFailure(reason=str(exc), exit_code=127)

    out_buf = bytearray()
    err_buf = bytearray()
    budget = _OutputBudget(
        request.max_output_bytes, on_exceeded=lambda: kill_process_group(proc.pid)
    )
    readers = [
        threading.Thread(target=_drain, args=(proc.stdout, out_buf, budget), daemon=True),
        threading.Thread(target=_drain, args=(proc.stderr, err_buf, budget), daemon=True),
    ]
    for reader in readers:
        reader.start()

    timed_out = False
    try:
        rc = proc.wait(timeout=request.timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        kill_process_group(proc.pid)
        rc = proc.wait()
    except BaseException:
        kill_process_group(proc.pid)
        raise

    for reader in readers:
        reader.join(timeout=_READER_JOIN_TIMEOUT)
        if reader.is_alive():
            LOGGER.warning("exec: output pipe still open after exit: %s", cmd)

    stderr = _decode(budget.snapshot(err_buf), request)

    if budget.exceeded:
        LOGGER.warning(
            "exec: output exceeded %d bytes: %s", request.max_output_bytes, cmd
        )
        return ExecutionFailure(
            reason=f"output exceeded {request.max_output_bytes} bytes",
            stderr=stderr,
        )

    if timed_out:
        LOGGER.warning("exec: timed out after %ss: %s", request.timeout, cmd)
        return ExecutionTimeout(timeout=request.timeout)

    if rc == 0:
        stdout = _decode(budget.snapshot(out_buf), request)
        return ExecutionSuccess(stdout=stdout, stderr=stderr)

    if rc < 0:
        sig = -rc
        try:
            name = signal.Signals(sig).name
        except ValueError:
            name = str(sig)
        LOGGER.warning("exec: killed by %s: %s", name, cmd)
        return ExecutionFailure(
            reason=f"Command terminated by signal {name}", stderr=stderr, signal=sig
        )

    LOGGER.warning("exec: exit code %d: %s", rc, cmd)
    return ExecutionFailure(
        reason=f"Command failed with exit code {rc}", stderr=stderr, exit_code=rc
    )


def run(
    command: Union[str, Sequence[str]],
    timeout: float = DEFAULT_TIMEOUT,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    **kwargs,
) -> ExecutionResult:
    """
    Convenience wrapper: a string goes through /bin/bash -c, a sequence is
    executed as an argument vector.
    """
    if isinstance(command, str):
        request = ExecutionRequest.shell(
            command, timeout=timeout, max_output_bytes=max_output_bytes, **kwargs
        )
    else:
        request = ExecutionRequest(
            argv=tuple(command),
            timeout=timeout,
            max_output_bytes=max_output_bytes,
            **kwargs,
        )
    return run_command(request)
