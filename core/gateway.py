"""
HealthMate - Conversation Gateway
Runs one chat turn: read history -> build context -> infer -> append.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import uuid4

from core.exceptions import InferenceError, InvalidInputError
from core.history_store import HistoryStore, Turn

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    ai_response: str
    session_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"aiResponse": self.ai_response, "sessionId": self.session_id}


def build_context(system_prompt: str, history: List[Turn], user_text: str) -> List[Dict[str, str]]:
    """
    Assemble the role-tagged messages for the model.

    System persona first, then every prior turn as a user/assistant pair in
    conversation order, then the new user message.
    """
    messages = [{"role": "system", "content": system_prompt}]
    for turn in history:
        messages.append({"role": "user", "content": turn.user_text})
        messages.append({"role": "assistant", "content": turn.ai_text})
    messages.append({"role": "user", "content": user_text})
    return messages


class ConversationGateway:
    """
    Orchestrates chat turns over a history store and an inference engine.

    Each successful turn appends exactly one Turn to the store; a failed
    inference leaves the history untouched so a retry re-reads it unchanged.
    Turns for the same session are not serialized against each other.
    """

    def __init__(self, store: HistoryStore, engine, system_prompt: str = None):
        if system_prompt is None:
            from config.settings import HEALTHMATE_SYSTEM_PROMPT
            system_prompt = HEALTHMATE_SYSTEM_PROMPT
        self.store = store
        self.engine = engine
        self.system_prompt = system_prompt
        self._turn_count = 0
        self._count_lock = threading.Lock()

    def handle_message(self, session_id: Optional[str], user_text: Any) -> ChatReply:
        """
        Answer user_text within session_id.

        Args:
            session_id: Caller's session identifier. A new one is minted when empty.
            user_text: The user's message; must be a non-empty string.

        Returns:
            ChatReply with the model's answer and the (possibly new) session id.
        """
        if not isinstance(user_text, str) or not user_text:
            raise InvalidInputError("Invalid input format")

        if not session_id:
            session_id = str(uuid4())
            logger.info(f"Minted new session {session_id}")

        start_time = time.time()
        history = self.store.read(session_id)
        messages = build_context(self.system_prompt, history, user_text)

        try:
            reply = self.engine.infer(messages)
        except InferenceError:
            logger.error(f"[{session_id}] Inference failed, history left unchanged")
            raise
        except Exception as e:
            logger.error(f"[{session_id}] Inference failed: {e}", exc_info=True)
            raise InferenceError(f"Inference failed: {e}") from e

        self.store.append(session_id, Turn(user_text=user_text, ai_text=reply))
        with self._count_lock:
            self._turn_count += 1

        logger.info(
            f"[{session_id}] Turn done in {round(time.time() - start_time, 2)}s "
            f"(history: {len(history) + 1} turns, reply: {len(reply)} chars)"
        )
        return ChatReply(ai_response=reply, session_id=session_id)

    def history(self, session_id: Optional[str]) -> List[str]:
        """Wire-form history lines; empty when no session id is given."""
        if not session_id:
            return []
        return self.store.read_lines(session_id)

    def reset(self, session_id: str) -> None:
        """Drop the stored history for session_id."""
        self.store.delete(session_id)
        logger.info(f"[{session_id}] History cleared")

    def get_status(self) -> Dict[str, Any]:
        return {
            "gateway": "HealthMate Conversation Gateway v1.0",
            "total_turns": self._turn_count,
            "store": self.store.get_status(),
            "engine": self.engine.get_status(),
        }
