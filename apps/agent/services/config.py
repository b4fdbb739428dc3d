from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def env_str(name: str, default: str = "") -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() or default


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw, 10)
    except ValueError:
        return default


@dataclass(frozen=True)
class AgentSettings:
    token: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000
    deploy_script: Path = Path("scripts/deploy.sh")
    repo_dir: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AgentSettings":
        """
        Read the agent configuration once at startup.

        An empty AGENT_TOKEN counts as unset: the agent still starts, but
        every protected route answers 500 until the operator fixes it.
        """
        token = (os.getenv("AGENT_TOKEN") or "").strip() or None
        repo_dir = env_str("AGENT_REPO_DIR")
        return cls(
            token=token,
            host=env_str("AGENT_HOST", "0.0.0.0"),
            port=env_int("PORT", 3000),
            deploy_script=Path(env_str("AGENT_DEPLOY_SCRIPT", "scripts/deploy.sh")),
            repo_dir=Path(repo_dir) if repo_dir else None,
            log_level=env_str("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def token_configured(self) -> bool:
        return bool(self.token)
