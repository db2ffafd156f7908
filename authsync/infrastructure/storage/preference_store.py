"""JSON file preference store.

Durable storage for the handful of non-secret preferences the client keeps
between runs (locale, theme). Writes go through a temporary file and an
atomic rename so a crash never leaves half-written JSON behind.
"""

import json
import os
from pathlib import Path

from authsync.domain.protocols.logger_protocol import LoggerProtocol

LOCALE_KEY = "locale"
THEME_KEY = "theme"


class JsonPreferenceStore:
    """PreferenceStoreProtocol implementation backed by one JSON file.

    Attributes:
        _path: Location of the JSON file.
        _values: In-memory copy, loaded lazily on first access.
    """

    def __init__(self, path: Path, *, logger: LoggerProtocol) -> None:
        self._path = path
        self._logger = logger
        self._values: dict[str, str] | None = None

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        if values.get(key) == value:
            return
        values[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        values = self._load()
        if values.pop(key, None) is not None:
            self._flush()

    def _load(self) -> dict[str, str]:
        if self._values is not None:
            return self._values

        self._values = {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return self._values
        except (OSError, ValueError) as e:
            self._logger.warning(
                "preferences_unreadable", path=str(self._path), error=str(e)
            )
            return self._values

        if isinstance(raw, dict):
            self._values = {str(k): str(v) for k, v in raw.items() if v is not None}
        return self._values

    def _flush(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            self._logger.warning(
                "preferences_write_failed", path=str(self._path), error=str(e)
            )
