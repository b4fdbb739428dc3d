from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel

from .common import CamelModel


class DeployStatusOut(CamelModel):
    in_progress: bool
    last_started_at: Optional[str] = None
    can_deploy_now: bool


class DeployOut(BaseModel):
    success: bool
    message: str
    timestamp: str
    output: str
    errors: str


class DeployRejectedOut(BaseModel):
    success: bool = False
    error: str
    status: DeployStatusOut


class DeployHistoryEntryOut(CamelModel):
    started_at: str
    finished_at: str
    outcome: Literal["succeeded", "failed", "timed_out", "error"]
    success: bool
    exit_code: Optional[int] = None
    duration_seconds: float
    output: str
    errors: str


class DeployHistoryOut(BaseModel):
    entries: List[DeployHistoryEntryOut]
