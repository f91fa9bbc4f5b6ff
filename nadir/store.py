"""Persistent, grouped application settings kept in a JSON file."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

ORGANIZATION_NAME = "nadir"
ORGANIZATION_DOMAIN = "nadir.sourceforge.net"
APPLICATION_NAME = "nadir"


def default_path() -> Path:
    """Return the per-user location of the settings file."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / ORGANIZATION_NAME / f"{APPLICATION_NAME}.json"


class SettingsStore:
    """Grouped key/value settings, loaded on creation and written by sync()."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(path) if path is not None else default_path()
        self._groups: dict[str, dict[str, Any]] = self._load()

    def _load(self) -> dict[str, dict[str, Any]]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        if not isinstance(raw, dict):
            return {}
        return {
            str(group): dict(entries)
            for group, entries in raw.items()
            if isinstance(entries, dict)
        }

    def value(self, group: str, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` when it is not set."""
        return self._groups.get(group, {}).get(key, default)

    def set_value(self, group: str, key: str, value: Any) -> None:
        """Store ``value``; it is written to disk on the next sync()."""
        if isinstance(value, tuple):
            value = list(value)
        self._groups.setdefault(group, {})[key] = value

    def sync(self) -> None:
        """Write all settings to the file, creating its directory if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(self._groups, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)