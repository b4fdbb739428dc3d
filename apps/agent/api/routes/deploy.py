from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.auth import client_origin
from api.dependencies import get_deployer
from api.schemas.deploy import (
    DeployHistoryEntryOut,
    DeployHistoryOut,
    DeployOut,
    DeployRejectedOut,
    DeployStatusOut,
)
from services.deploy import DeployController, DeployStatus
from services.errors import AgentError

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/deploy", tags=["deploy"])


def _status_out(status: DeployStatus) -> DeployStatusOut:
    return DeployStatusOut(
        in_progress=status.in_progress,
        last_started_at=status.last_started_at,
        can_deploy_now=status.can_deploy_now,
    )


@router.post(
    "",
    response_model=DeployOut,
    responses={400: {"model": DeployRejectedOut}, 500: {"model": DeployRejectedOut}},
)
def trigger_deploy(
    request: Request, deployer: DeployController = Depends(get_deployer)
):
    """
    Run the deployment script and wait for it to finish.

    Rejections (cooldown, already running) and crashes always carry the
    controller's current status so the operator can tell contention apart
    from a broken script.
    """
    LOGGER.info("Deployment requested from %s", client_origin(request) or "unknown")
    try:
        entry = deployer.trigger()
    except AgentError as exc:
        LOGGER.warning("Deployment not run: %s", exc.message)
        body = DeployRejectedOut(error=exc.message, status=_status_out(deployer.status()))
        return JSONResponse(
            status_code=exc.status_code, content=body.model_dump(by_alias=True)
        )

    return DeployOut(
        success=entry.success,
        message="Deployment completed" if entry.success else "Deployment failed",
        timestamp=entry.finished_at,
        output=entry.output,
        errors=entry.errors,
    )


@router.get("/status", response_model=DeployStatusOut)
def deploy_status(deployer: DeployController = Depends(get_deployer)) -> DeployStatusOut:
    return _status_out(deployer.status())


@router.get("/history", response_model=DeployHistoryOut)
def deploy_history(
    deployer: DeployController = Depends(get_deployer),
) -> DeployHistoryOut:
    entries = [DeployHistoryEntryOut(**e.to_dict()) for e in deployer.history()]
    return DeployHistoryOut(entries=entries)
