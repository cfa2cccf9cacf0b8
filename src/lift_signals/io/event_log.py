"""
Notifier that appends events to a JSONL file.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any


class EventLog:
    """Appends one line per emitted event to ``events.jsonl``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        """
        Append an event.

        Raises:
            OSError: If the log cannot be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        record = {
            "event": event_type,
            "emitted_at": datetime.now().isoformat(timespec="seconds"),
            "payload": payload,
        }
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")

    def read(self) -> list[dict[str, Any]]:
        """All events logged so far (empty if the log does not exist)."""
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
