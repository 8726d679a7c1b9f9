"""
HealthMate - Chat API Routes
Send a message, read or clear a session's history, and health checks.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from app.chat import get_gateway
from core.exceptions import HealthMateError
from core.gateway import ConversationGateway

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/")
async def send_message(
    request: Request,
    x_session_id: Optional[str] = Header(default=None),
    gateway: ConversationGateway = Depends(get_gateway),
):
    """
    Answer a user message and record the turn.

    - **input**: the user's message (JSON body)
    - **X-Session-ID**: session to continue; a new one is returned when absent
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Bad Request")

    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid input format")

    try:
        reply = await asyncio.to_thread(gateway.handle_message, x_session_id, body.get("input"))
    except HealthMateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Chat error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Chat failed: {str(e)}")

    return reply.to_dict()


@router.get("/")
async def get_history(
    x_session_id: Optional[str] = Header(default=None),
    gateway: ConversationGateway = Depends(get_gateway),
):
    """Full history of the session named by X-Session-ID."""
    try:
        history = await asyncio.to_thread(gateway.history, x_session_id)
    except HealthMateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"history": history}


@router.delete("/")
async def clear_history(
    x_session_id: Optional[str] = Header(default=None),
    gateway: ConversationGateway = Depends(get_gateway),
):
    """Forget the session named by X-Session-ID."""
    if not x_session_id:
        raise HTTPException(status_code=400, detail="Missing X-Session-ID header")
    try:
        await asyncio.to_thread(gateway.reset, x_session_id)
    except HealthMateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True}


@router.get("/health")
async def health_check(gateway: ConversationGateway = Depends(get_gateway)):
    """Health check with store and engine status."""
    return {
        "status": "healthy",
        **gateway.get_status(),
    }
