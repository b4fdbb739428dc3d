from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from .common import CamelModel


class ContainerOut(BaseModel):
    name: str
    id: str
    status: str


class ContainersOut(BaseModel):
    containers: List[ContainerOut]
    count: int
    timestamp: str


class CommitOut(CamelModel):
    hash: str
    full_hash: Optional[str] = None
    author: str
    message: str
    time: str
    error: Optional[str] = None


class LogsOut(BaseModel):
    container: str
    lines: int
    logs: str
    timestamp: str
