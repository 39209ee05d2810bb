"""
Local session log and per-device participant id, both kept in a data directory.
"""
from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Optional

from psychopy import logging

from crt import config
from crt.recorder import TestSession


class SessionLog:
    """
    Completed sessions, newest first, stored as one JSON array under a
    versioned key (<data_dir>/<HISTORY_KEY>.json).
    """

    def __init__(self, data_dir: Path, key: str = config.HISTORY_KEY) -> None:
        self.path = Path(data_dir) / f"{key}.json"

    def _read_raw(self) -> list:
        if not self.path.exists():
            return []
        try:
            parsed = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logging.warning(f"Session log {self.path} unreadable ({exc}); treating as empty")
            return []
        return parsed if isinstance(parsed, list) else []

    def load(self) -> list[TestSession]:
        """
        All readable sessions. An absent or unparseable log reads as empty;
        entries that do not parse as a session are skipped.
        """
        sessions: list[TestSession] = []
        for entry in self._read_raw():
            try:
                sessions.append(TestSession.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logging.warning(f"Session log {self.path}: skipping malformed entry ({exc})")
        return sessions

    def get(self, session_id: str) -> Optional[TestSession]:
        return next((s for s in self.load() if s.id == session_id), None)

    def add(self, session: TestSession) -> None:
        # unparsed entries are kept as stored
        entries = self._read_raw()
        entries.insert(0, session.to_dict())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(entries, ensure_ascii=False), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def participant_id(data_dir: Optional[Path]) -> str:
    """
    Per-device id, generated once and reused. Without a data directory the
    all-zero placeholder is returned.
    """
    if data_dir is None:
        return config.PLACEHOLDER_PARTICIPANT_ID
    path = Path(data_dir) / config.PARTICIPANT_KEY
    if path.exists():
        existing = path.read_text(encoding="utf-8").strip()
        if existing:
            return existing
    new_id = str(uuid.uuid4())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(new_id, encoding="utf-8")
    return new_id
