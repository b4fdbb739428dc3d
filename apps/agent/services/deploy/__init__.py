from __future__ import annotations

from .controller import DeployController, DeployStatus
from .history import DeployHistory, DeployLogEntry

__all__ = ["DeployController", "DeployHistory", "DeployLogEntry", "DeployStatus"]
