"""
HealthMate - History Object Routes
Exposes one session's stored history as an addressable object.

    GET    /history/{session_id}  -> {"history": [...]}
    POST   /history/{session_id}  {"userInput": str, "aiResponse": str} -> {"success": true}
    DELETE /history/{session_id}  -> {"success": true}

These routes answer 404 unless HISTORY_API_ENABLED is set.
"""
import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request

from app.chat import get_history_store
from core.exceptions import HealthMateError
from core.history_store import HistoryStore, Turn

router = APIRouter()


def require_history_api():
    from config import settings

    if not settings.HISTORY_API_ENABLED:
        raise HTTPException(status_code=404, detail="Not Found")


@router.get("/{session_id}")
async def read_history(session_id: str, store: HistoryStore = Depends(get_history_store)):
    try:
        history = await asyncio.to_thread(store.read_lines, session_id)
    except HealthMateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"history": history}


@router.post("/{session_id}")
async def append_turn(
    session_id: str,
    request: Request,
    store: HistoryStore = Depends(get_history_store),
):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid body")

    if (
        not isinstance(body, dict)
        or not isinstance(body.get("userInput"), str)
        or not isinstance(body.get("aiResponse"), str)
    ):
        raise HTTPException(status_code=400, detail="Invalid body")

    turn = Turn(user_text=body["userInput"], ai_text=body["aiResponse"])
    try:
        await asyncio.to_thread(store.append, session_id, turn)
    except HealthMateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True}


@router.delete("/{session_id}")
async def delete_history(session_id: str, store: HistoryStore = Depends(get_history_store)):
    try:
        await asyncio.to_thread(store.delete, session_id)
    except HealthMateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True}
