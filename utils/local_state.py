# lehenga/utils/local_state.py

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

APP_STORAGE_SUBDIR = "lehenga-orders"

# Keys used by the app
READ_NOTIFICATIONS = "readNotifications"
THEME = "theme"
REMEMBERED_EMAIL = "rememberedEmail"


def get_storage_dir(override: Optional[str] = None) -> Path:
    """Return the writable directory for per-machine app state."""

    if override:
        base_dir = Path(override)
    elif sys.platform.startswith("win"):
        base_dir = Path(os.getenv("APPDATA", Path.home())) / APP_STORAGE_SUBDIR
    elif sys.platform == "darwin":
        base_dir = Path.home() / "Library" / "Application Support" / APP_STORAGE_SUBDIR
    else:
        base_dir = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")) / APP_STORAGE_SUBDIR

    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir


class LocalState:
    """
    Small JSON key-value file kept on the machine running the app. It is
    never synced to Supabase.

    One file per namespace (e.g. the signed-in user's email) so two staff
    sharing a counter do not share their read notifications.
    """

    def __init__(self, namespace: str = "default", storage_dir: Optional[Path] = None):
        self.storage_dir = Path(storage_dir) if storage_dir else get_storage_dir()
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in namespace) or "default"
        self.path = self.storage_dir / f"state_{safe}.json"

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable local state %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        tmp = self.path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
