from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .errors import ExecutionError
from .executor import ExecutionRequest, ExecutionResult, ExecutionSuccess, run_command
from .util import utc_iso
from .validators import Identifier

LOGGER = logging.getLogger(__name__)

Runner = Callable[[ExecutionRequest], ExecutionResult]

DOCKER_PS_TIMEOUT = 10.0
GIT_TIMEOUT = 5.0
LOGS_TIMEOUT = 15.0
LOGS_MAX_OUTPUT_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024

_NA = "N/A"


def _failure_reason(result: ExecutionResult) -> str:
    return getattr(result, "reason", "unknown error")


class HostInspector:
    """
    Read-only commands against the local docker daemon and git checkout.

    Every command is a fixed argument vector; the only caller-supplied piece
    is a container name, which must already be a validated Identifier.
    """

    def __init__(
        self, *, runner: Runner = run_command, repo_dir: Optional[Path] = None
    ) -> None:
        self._runner = runner
        self._repo_dir = repo_dir

    def _run(self, argv: List[str], timeout: float, **kwargs) -> ExecutionResult:
        return self._runner(
            ExecutionRequest(
                argv=tuple(argv),
                timeout=timeout,
                max_output_bytes=kwargs.pop("max_output_bytes", DEFAULT_MAX_OUTPUT_BYTES),
                **kwargs,
            )
        )

    def containers(self) -> List[Dict[str, str]]:
        result = self._run(
            ["docker", "ps", "--format", "{{.Names}}|{{.Status}}|{{.ID}}"],
            DOCKER_PS_TIMEOUT,
        )
        if not isinstance(result, ExecutionSuccess):
            LOGGER.error("docker ps failed: %s", _failure_reason(result))
            return []

        out: List[Dict[str, str]] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            name, _, rest = line.partition("|")
            status, _, cid = rest.partition("|")
            out.append({"name": name, "id": cid.strip()[:12], "status": status})
        return out

    def latest_commit(self) -> Dict[str, Any]:
        result = self._run(
            ["git", "log", "-1", "--pretty=format:%H|%an|%s|%ci"],
            GIT_TIMEOUT,
            cwd=self._repo_dir,
        )
        if not isinstance(result, ExecutionSuccess):
            LOGGER.error("git log failed: %s", _failure_reason(result))
            return _missing_commit("Failed to fetch git information")

        output = result.stdout.strip()
        if not output:
            return _missing_commit("No commits found")

        parts = output.split("|")
        if len(parts) < 4:
            return _missing_commit("Unexpected git output")

        # the subject may itself contain "|"
        full_hash, author, when = parts[0], parts[1], parts[-1]
        return {
            "hash": full_hash[:12],
            "fullHash": full_hash,
            "author": author,
            "message": "|".join(parts[2:-1]),
            "time": when,
        }

    def container_logs(self, container: Identifier, lines: int) -> Dict[str, Any]:
        result = self._run(
            ["docker", "logs", f"--tail={lines}", container],
            LOGS_TIMEOUT,
            max_output_bytes=LOGS_MAX_OUTPUT_BYTES,
        )
        if not isinstance(result, ExecutionSuccess):
            LOGGER.error(
                "Error fetching logs for %s: %s", container, _failure_reason(result)
            )
            raise ExecutionError(f"Failed to fetch logs: {_failure_reason(result)}")

        return {
            "container": container,
            "lines": lines,
            "logs": result.stdout,
            "timestamp": utc_iso(),
        }


def _missing_commit(error: str) -> Dict[str, Any]:
    return {
        "hash": _NA,
        "author": _NA,
        "message": _NA,
        "time": _NA,
        "error": error,
    }
