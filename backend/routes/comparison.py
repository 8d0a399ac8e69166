"""Comparison game endpoints: create, guess, skip to next hint, suggest, abandon."""

from fastapi import APIRouter, HTTPException

from anigame.games import ComparisonGameController, GameStartError
from backend import sessions

from .models import GuessBody, NewComparisonGame

router = APIRouter()


def comparison_view(controller: ComparisonGameController) -> dict:
    """Public view of a game. The target stays hidden until the game ends."""
    s = controller.session
    return {
        "session_id": s.session_id,
        "mode": s.mode,
        "state": s.state,
        "budget": s.budget,
        "attempts_remaining": s.attempts_remaining,
        "attempts_used": s.attempts_used,
        "history": [
            {
                "mal_id": r.anime.mal_id,
                "title": r.anime.display_title,
                "comparison": r.comparison.model_dump(mode="json") if r.comparison else None,
            }
            for r in s.history
        ],
        "board": controller.board(),
        "hints": dict(s.hints),
        "hint_status": controller.hint_status(),
        "elapsed_seconds": controller.elapsed(),
        "score": s.score,
        "target": s.target.model_dump(mode="json") if s.terminal else None,
    }


@router.post("/comparison/sessions")
async def create_comparison_game(body: NewComparisonGame):
    """Start a daily or unlimited comparison game."""
    controller = sessions.new_comparison(body.mode, body.username)
    try:
        await controller.start()
    except GameStartError as e:
        raise HTTPException(502, str(e))
    sessions.register_comparison(controller)
    return comparison_view(controller)


@router.get("/comparison/sessions/{session_id}")
async def get_comparison_game(session_id: str):
    return comparison_view(sessions.get_comparison(session_id))


@router.post("/comparison/sessions/{session_id}/guess")
async def comparison_guess(session_id: str, body: GuessBody):
    controller = sessions.get_comparison(session_id)
    async with sessions.exclusive(session_id):
        outcome = await controller.submit_guess(body.title)
    response = {
        "outcome": outcome.model_dump(mode="json"),
        "changed": outcome.changed_state,
        "game": comparison_view(controller),
    }
    if controller.session.terminal:
        sessions.retire(session_id)
    return response


@router.post("/comparison/sessions/{session_id}/skip")
async def comparison_skip(session_id: str):
    """Spend tries to unlock the next hint."""
    controller = sessions.get_comparison(session_id)
    async with sessions.exclusive(session_id):
        outcome = await controller.request_skip()
    response = {"outcome": outcome.model_dump(mode="json"), "game": comparison_view(controller)}
    if controller.session.terminal:
        sessions.retire(session_id)
    return response


@router.get("/comparison/sessions/{session_id}/suggest")
async def comparison_suggest(session_id: str, q: str = ""):
    controller = sessions.get_comparison(session_id)
    results = await controller.suggest(q)
    return [
        {"mal_id": a.mal_id, "title": a.title, "title_english": a.title_english, "image": a.image}
        for a in results
    ]


@router.delete("/comparison/sessions/{session_id}")
async def abandon_comparison_game(session_id: str):
    """Give up on a game without scoring it."""
    async with sessions.exclusive(session_id):
        sessions.drop_comparison(session_id)
    return {"ok": True}
