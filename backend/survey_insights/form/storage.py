"""Draft persistence for the survey form."""

import json
import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Iterator, Union

from pydantic import ValidationError

from survey_insights.form.engine import FormState

logger = logging.getLogger(__name__)

STORAGE_KEY = "survey-storage"


class JsonFileStorage(MutableMapping):
    """String key-value storage kept in a single JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("[form] storage file %s unreadable: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def __getitem__(self, key: str) -> str:
        return self._read()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def __delitem__(self, key: str) -> None:
        data = self._read()
        del data[key]
        self._write(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._read())

    def __len__(self) -> int:
        return len(self._read())


class FormStateStore:
    """Loads and saves the persisted part of a ``FormState``."""

    def __init__(self, storage: MutableMapping, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> FormState:
        raw = self.storage.get(self.key)
        if not raw:
            return FormState()
        try:
            envelope = json.loads(raw)
            return FormState.model_validate(envelope.get("state") or {})
        except (json.JSONDecodeError, AttributeError, ValidationError) as exc:
            logger.warning("[form] discarding unreadable draft: %s", exc)
            return FormState()

    def save(self, state: FormState) -> None:
        self.storage[self.key] = json.dumps({"state": state.persisted(), "version": 0}, ensure_ascii=False)

    def clear(self) -> None:
        self.storage.pop(self.key, None)
