from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)

SECRET_KEYS = ("password", "pass", "pw")


def _hostscript_home() -> Path:
    return Path.home() / ".hostscript"


def default_settings() -> Dict[str, Any]:
    return {
        "schema_version": 1,
        "last_used_at": None,
        "user": None,
        # Host expression, same syntax as --hosts
        "hosts": None,
        "port": 22,
        "strict_host_keys": False,
    }


@dataclass
class SettingsStore:
    """Load/save persistent settings.

    Settings stay a plain dict so unknown keys written by newer versions
    survive a load/save cycle.
    """

    filename: str = "settings.json"
    home: Path = field(default_factory=_hostscript_home)

    def path(self) -> Path:
        return self.home / self.filename

    def load(self) -> Dict[str, Any]:
        path = self.path()
        base = default_settings()

        if not path.exists():
            return base

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings.json root is not an object")
        except (OSError, ValueError) as e:
            log.warning("settings file %s is unreadable (%s); using defaults", path, e)
            self._backup(path)
            return base

        # merge defaults (do not delete unknown keys)
        merged = dict(base)
        merged.update(data)
        return merged

    def _backup(self, path: Path) -> None:
        ts = time.strftime("%Y%m%d_%H%M%S")
        bak = path.with_name(f"{path.name}.bak.{ts}")
        try:
            bak.write_bytes(path.read_bytes())
        except OSError as e:
            log.warning("could not back up %s: %s", path, e)

    def save(self, data: Dict[str, Any]) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        path = self.path()
        tmp = path.with_suffix(path.suffix + ".tmp")

        # Shallow copy so we can stamp timestamp without mutating caller
        payload = {k: v for k, v in (data or {}).items() if k.lower() not in SECRET_KEYS}
        payload.setdefault("schema_version", 1)
        payload["last_used_at"] = time.strftime("%Y-%m-%dT%H:%M:%S")

        # Atomic write
        tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, path)

    # Convenience helpers -------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        value = self.load().get(key)
        return default if value is None else value

    def update(self, patch: Dict[str, Any]) -> None:
        data = self.load()
        data.update(patch)
        self.save(data)
