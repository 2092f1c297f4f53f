from __future__ import annotations

import os
from pathlib import Path


DATA_DIR_ENV = "PRINTDECK_DATA_DIR"


def user_data_dir() -> Path:
    configured = (os.getenv(DATA_DIR_ENV) or "").strip()
    if configured:
        return Path(configured).expanduser()
    appdata = os.getenv("APPDATA")
    if appdata:
        return Path(appdata) / "PrintDeck"
    return Path.home() / ".printdeck"


def settings_path() -> Path:
    return user_data_dir() / "settings.ini"


def action_log_path() -> Path:
    return user_data_dir() / "logs" / "actions.log"
