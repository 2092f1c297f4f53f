from __future__ import annotations

from typing import Protocol

from PySide6.QtCore import QSettings


class PreferenceStore(Protocol):
    def get(self, key: str) -> int | None: ...

    def set(self, key: str, value: int) -> None: ...


def _coerce_int(raw: object) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


class QSettingsPreferenceStore:
    def __init__(self, settings: QSettings | None = None) -> None:
        self.settings = settings or QSettings("PrintDeck", "PrintDeck")

    def get(self, key: str) -> int | None:
        if not self.settings.contains(key):
            return None
        return _coerce_int(self.settings.value(key))

    def set(self, key: str, value: int) -> None:
        self.settings.setValue(key, int(value))
        self.settings.sync()


class MemoryPreferenceStore:
    """Process-local preference values; nothing survives the process."""

    def __init__(self, initial: dict[str, int] | None = None) -> None:
        self._values: dict[str, int] = dict(initial or {})

    def get(self, key: str) -> int | None:
        return self._values.get(key)

    def set(self, key: str, value: int) -> None:
        self._values[key] = int(value)
