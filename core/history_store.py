"""
HealthMate - Session History Store
Append-only conversation log, one history per session identifier.

Histories are kept in their wire form: a flat list of strings where each
turn is a "User: ..." line immediately followed by an "AI: ..." line.
"""
import hashlib
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from core.exceptions import StorageError

logger = logging.getLogger(__name__)

USER_PREFIX = "User: "
AI_PREFIX = "AI: "


@dataclass(frozen=True)
class Turn:
    """One user message and the assistant reply to it."""

    user_text: str
    ai_text: str

    def to_lines(self) -> List[str]:
        return [f"{USER_PREFIX}{self.user_text}", f"{AI_PREFIX}{self.ai_text}"]


def parse_turns(lines: List[str]) -> List[Turn]:
    """
    Rebuild Turns from stored lines.

    A user line opens a turn and the next AI line closes it. Lines with an
    unknown prefix and user lines that are never answered are skipped.
    """
    turns = []
    pending = None
    for line in lines:
        if not isinstance(line, str):
            continue
        if line.startswith(USER_PREFIX):
            pending = line[len(USER_PREFIX):]
        elif line.startswith(AI_PREFIX) and pending is not None:
            turns.append(Turn(user_text=pending, ai_text=line[len(AI_PREFIX):]))
            pending = None
    return turns


class HistoryStore:
    """
    Base class for history backends.

    Subclasses implement _load, _save and _remove. Appends are serialized
    per store instance so a read issued after an append returns it.
    """

    backend = "base"

    def __init__(self, max_turns: int = 0):
        self._max_turns = max_turns
        self._lock = threading.Lock()

    def read(self, session_id: str) -> List[Turn]:
        """Full history for session_id, empty if the session is unknown."""
        return parse_turns(self.read_lines(session_id))

    def read_lines(self, session_id: str) -> List[str]:
        return list(self._load(session_id) or [])

    def append(self, session_id: str, turn: Turn) -> None:
        with self._lock:
            lines = list(self._load(session_id) or [])
            lines.extend(turn.to_lines())
            self._save(session_id, self._trim(lines))

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._remove(session_id)

    def get_status(self) -> Dict:
        return {"backend": self.backend, "max_turns": self._max_turns}

    def _trim(self, lines: List[str]) -> List[str]:
        limit = self._max_turns * 2
        if limit > 0 and len(lines) > limit:
            return lines[-limit:]
        return lines

    def _load(self, session_id: str) -> Optional[List[str]]:
        raise NotImplementedError

    def _save(self, session_id: str, lines: List[str]) -> None:
        raise NotImplementedError

    def _remove(self, session_id: str) -> None:
        raise NotImplementedError


class InMemoryHistoryStore(HistoryStore):
    """Not persistent — histories live as long as the process."""

    backend = "memory"

    def __init__(self, max_turns: int = 0):
        super().__init__(max_turns=max_turns)
        self._histories: Dict[str, List[str]] = {}

    def _load(self, session_id: str) -> Optional[List[str]]:
        return self._histories.get(session_id)

    def _save(self, session_id: str, lines: List[str]) -> None:
        self._histories[session_id] = lines

    def _remove(self, session_id: str) -> None:
        self._histories.pop(session_id, None)

    @property
    def total_sessions(self) -> int:
        return len(self._histories)


class FileHistoryStore(HistoryStore):
    """
    One JSON document per session: {"history": [...]}.
    File names are the SHA-256 of the session id, so any opaque id is safe.
    """

    backend = "file"

    def __init__(self, directory=None, max_turns: int = 0):
        super().__init__(max_turns=max_turns)
        from config.settings import HISTORY_DIR
        self.directory = Path(directory or HISTORY_DIR)

    def _path(self, session_id: str) -> Path:
        digest = hashlib.sha256(session_id.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def _load(self, session_id: str) -> Optional[List[str]]:
        path = self._path(session_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read history {path.name}: {e}")
            raise StorageError(f"History for session is unreadable: {e}") from e

        history = document.get("history") if isinstance(document, dict) else None
        if not isinstance(history, list):
            raise StorageError(f"History document {path.name} is malformed")
        return history

    def _save(self, session_id: str, lines: List[str]) -> None:
        path = self._path(session_id)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"history": lines}, f)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Could not write history {path.name}: {e}")
            raise StorageError(f"History for session could not be saved: {e}") from e

    def _remove(self, session_id: str) -> None:
        try:
            self._path(session_id).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"History for session could not be deleted: {e}") from e


# Factory
def get_history_store() -> HistoryStore:
    from config.settings import HISTORY_BACKEND, HISTORY_DIR, HISTORY_MAX_TURNS

    if HISTORY_BACKEND == "file":
        logger.info(f"Using file history store at {HISTORY_DIR}")
        return FileHistoryStore(HISTORY_DIR, max_turns=HISTORY_MAX_TURNS)
    if HISTORY_BACKEND != "memory":
        logger.warning(f"Unknown HISTORY_BACKEND '{HISTORY_BACKEND}', using memory")
    return InMemoryHistoryStore(max_turns=HISTORY_MAX_TURNS)
