from __future__ import annotations

from fastapi import Request

from services.deploy import DeployController
from services.inspection import HostInspector


def get_deployer(request: Request) -> DeployController:
    return request.app.state.deployer


def get_inspector(request: Request) -> HostInspector:
    return request.app.state.inspector
