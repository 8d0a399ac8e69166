"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, chain games (/api/chain/...) and
comparison games (/api/comparison/...). Every game endpoint is scoped to a
session id returned when the game is created.
"""

from fastapi import APIRouter

from .chain import router as chain_router
from .comparison import router as comparison_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(chain_router)
router.include_router(comparison_router)
