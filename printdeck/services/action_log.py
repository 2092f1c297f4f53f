from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from printdeck.services.paths import action_log_path


class ActionLogService:
    """JSON-lines record of what was done to the file browser.

    Every entry carries ``timestamp``, ``component`` and ``action`` plus the
    caller's fields. Fields that are not JSON types (dates, enums) are stored
    as their ``str()``.
    """

    def __init__(self, log_path: Path | None = None, component: str = "files") -> None:
        self.log_path = (log_path or action_log_path()).expanduser()
        self.component = component

    def log_event(self, action: str, **fields: Any) -> None:
        entry = dict(fields)
        entry.update(
            timestamp=datetime.now(timezone.utc).isoformat(),
            component=self.component,
            action=action,
        )
        line = json.dumps(entry, sort_keys=True, default=str)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as handle:
                print(line, file=handle)
        except OSError:
            # An unwritable log never interrupts browsing.
            return

    def read_events(
        self,
        limit: int | None = None,
        action: str | None = None,
    ) -> list[dict[str, Any]]:
        try:
            lines = self.log_path.read_text(encoding="utf-8").splitlines()
        except OSError:
            return []
        events: list[dict[str, Any]] = []
        for line in filter(str.strip, lines):
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict):
                continue
            if action is not None and entry.get("action") != action:
                continue
            events.append(entry)
        if limit is None:
            return events
        return events[-limit:] if limit > 0 else []
