from fastapi import APIRouter

from .interviews import router as interviews_router
from .reports import router as reports_router
from .sessions import router as sessions_router

router = APIRouter()

router.include_router(interviews_router)
router.include_router(sessions_router)
router.include_router(reports_router)
