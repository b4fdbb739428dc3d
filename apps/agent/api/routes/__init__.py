from fastapi import APIRouter, Depends

from api.auth import require_token

from .deploy import router as deploy_router
from .inspection import router as inspection_router

router = APIRouter(dependencies=[Depends(require_token)])
router.include_router(inspection_router)
router.include_router(deploy_router)
