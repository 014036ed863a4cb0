"""
Persistence hooks for learned coach state.

Learned tables are session-scoped by default. These hooks snapshot a
coach's exported state to disk and restore it later, for hosts that want
learning to survive a restart.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ..coach import CoachOrchestrator

logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 1


class LearningPersistence:
    """
    Handles persistence of learned state to disk.

    Features:
    - Atomic writes (temp file + rename)
    - Schema version checking
    - Graceful degradation on load failure
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directory for storing learned state
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.event_counter = 0

    def snapshot(self, session_id: str, coach: "CoachOrchestrator") -> bool:
        """
        Save a coach's learned state to disk.

        Returns:
            True if save succeeded
        """
        try:
            snapshot_data = {
                "version": STATE_SCHEMA_VERSION,
                "session_id": session_id,
                "event_counter": self.event_counter,
                "state": coach.export_state(),
            }

            path = self._get_path(session_id)
            temp_path = path.with_suffix(".tmp")

            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(snapshot_data, f, indent=2)

            temp_path.replace(path)

            logger.debug(f"Learned state snapshot saved for {session_id}")
            return True

        except Exception as e:
            logger.warning(f"Failed to save learned state for {session_id}: {e}")
            return False

    def restore(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Read a saved snapshot.

        Returns:
            The exported coach state, or None if missing or incompatible
        """
        path = self._get_path(session_id)

        if not path.exists():
            logger.debug(f"No saved learned state found for {session_id}")
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)

            version = data.get("version", 0)
            if version != STATE_SCHEMA_VERSION:
                logger.warning(
                    f"Incompatible learned state version for {session_id}: "
                    f"saved={version}, current={STATE_SCHEMA_VERSION}"
                )
                return None

            self.event_counter = data.get("event_counter", 0)
            logger.debug(f"Learned state restored for {session_id}")
            return data["state"]

        except Exception as e:
            logger.warning(f"Failed to restore learned state for {session_id}: {e}")
            return None

    def should_snapshot(self, every_n: int) -> bool:
        """Count one event; True on every n-th."""
        self.event_counter += 1
        if every_n <= 0:
            return False
        return (self.event_counter % every_n) == 0

    def _get_path(self, session_id: str) -> Path:
        safe_id = "".join(c if c.isalnum() else "_" for c in session_id)
        return self.base_path / f"{safe_id}_coach.json"

    def delete(self, session_id: str) -> bool:
        """
        Delete saved state for a session.

        Returns:
            True if deletion succeeded or file didn't exist
        """
        path = self._get_path(session_id)
        try:
            if path.exists():
                path.unlink()
                logger.debug(f"Deleted learned state for {session_id}")
            return True
        except Exception as e:
            logger.warning(f"Failed to delete learned state for {session_id}: {e}")
            return False
