from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_inspector
from api.schemas.common import ErrorOut
from api.schemas.inspection import CommitOut, ContainerOut, ContainersOut, LogsOut
from services.errors import RejectedInput
from services.inspection import HostInspector
from services.util import utc_iso
from services.validators import validate_identifier, validate_line_count

router = APIRouter(tags=["inspection"])


@router.get("/docker", response_model=ContainersOut)
def list_containers(inspector: HostInspector = Depends(get_inspector)) -> ContainersOut:
    containers = [ContainerOut(**c) for c in inspector.containers()]
    return ContainersOut(
        containers=containers, count=len(containers), timestamp=utc_iso()
    )


@router.get("/git/latest", response_model=CommitOut, response_model_exclude_none=True)
def latest_commit(inspector: HostInspector = Depends(get_inspector)) -> CommitOut:
    return CommitOut(**inspector.latest_commit())


@router.get(
    "/logs",
    response_model=LogsOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def container_logs(
    container: Optional[str] = Query(None),
    lines: Optional[str] = Query(None),
    inspector: HostInspector = Depends(get_inspector),
) -> LogsOut:
    # Both checks must pass before anything reaches the executor.
    if not container:
        raise RejectedInput("container parameter required")
    name = validate_identifier(container)
    # an empty `lines=` means "not given"
    count = validate_line_count(lines or None)
    return LogsOut(**inspector.container_logs(name, count))
