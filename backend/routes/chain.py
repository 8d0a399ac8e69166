"""Chain game endpoints: create/resume, guess, suggest, abandon."""

from fastapi import APIRouter, HTTPException

from anigame.games import ChainGameController, GameStartError
from backend import sessions

from .models import GuessBody, NewChainGame

router = APIRouter()


def chain_view(controller: ChainGameController) -> dict:
    s = controller.session
    return {
        "session_id": s.session_id,
        "state": s.state,
        "reference": s.reference.model_dump(mode="json") if s.reference else None,
        "challenge": {"kind": s.challenge.kind, "text": s.challenge.text} if s.challenge else None,
        "rounds_completed": s.rounds_completed,
        "score": s.score,
        "reason": s.reason,
        "used_count": len(s.used_ids),
        "history": [
            {"mal_id": r.anime.mal_id, "title": r.anime.display_title, "accepted": r.accepted}
            for r in s.history
        ],
    }


@router.post("/chain/sessions")
async def create_chain_game(body: NewChainGame):
    """Start a chain game, or resume the player's saved one when resume is set."""
    controller = sessions.new_chain(body.username)
    try:
        await controller.start(resume=body.resume)
    except GameStartError as e:
        raise HTTPException(502, str(e))
    if not controller.session.terminal:
        sessions.register_chain(controller)
    return chain_view(controller)


@router.get("/chain/sessions/{session_id}")
async def get_chain_game(session_id: str):
    return chain_view(sessions.get_chain(session_id))


@router.post("/chain/sessions/{session_id}/guess")
async def chain_guess(session_id: str, body: GuessBody):
    """Submit a title against the active challenge."""
    controller = sessions.get_chain(session_id)
    async with sessions.exclusive(session_id):
        outcome = await controller.submit_guess(body.title)
    response = {
        "outcome": outcome.model_dump(mode="json"),
        "changed": outcome.changed_state,
        "game": chain_view(controller),
    }
    if controller.session.terminal:
        sessions.retire(session_id)
    return response


@router.get("/chain/sessions/{session_id}/suggest")
async def chain_suggest(session_id: str, q: str = ""):
    """Autocomplete titles, skipping anime already used in this game."""
    controller = sessions.get_chain(session_id)
    results = await controller.suggest(q)
    return [
        {"mal_id": a.mal_id, "title": a.title, "title_english": a.title_english, "image": a.image}
        for a in results
    ]


@router.delete("/chain/sessions/{session_id}")
async def abandon_chain_game(session_id: str):
    """Drop a game and its saved checkpoint."""
    async with sessions.exclusive(session_id):
        controller = sessions.drop_chain(session_id)
        controller.abandon()
    return {"ok": True}
