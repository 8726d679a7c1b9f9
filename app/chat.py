"""
Shared conversation gateway for HealthMate.
Built lazily on first use from config/settings.py; routes receive it through
FastAPI dependencies so tests can swap in their own.
"""
import logging

from fastapi import Depends

from core.gateway import ConversationGateway
from core.history_store import HistoryStore

logger = logging.getLogger(__name__)

_gateway = None


def get_gateway() -> ConversationGateway:
    """Get or create the shared gateway instance."""
    global _gateway
    if _gateway is None:
        from core.history_store import get_history_store
        from core.inference import get_inference_engine

        _gateway = ConversationGateway(get_history_store(), get_inference_engine())
        logger.info(f"Gateway ready: {_gateway.get_status()}")
    return _gateway


def close_gateway() -> None:
    """Release the shared gateway's engine clients, if it was ever built."""
    global _gateway
    if _gateway is not None:
        _gateway.engine.close()
        _gateway = None


def get_history_store(gateway: ConversationGateway = Depends(get_gateway)) -> HistoryStore:
    return gateway.store
