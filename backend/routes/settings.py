"""Health check and runtime settings endpoints."""

from fastapi import APIRouter, Request

from backend import sessions

router = APIRouter()


@router.get("/health")
async def health():
    """Health check, with the number of games held in memory."""
    return {"status": "ok", "sessions": sessions.live_count()}


@router.get("/settings")
async def get_settings(request: Request):
    """Collaborator URLs and storage location the server is running with."""
    return request.app.state.settings.model_dump(mode="json")
