"""JSON codec for task request/result payloads."""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from pydantic import BaseModel

from shiftdesk.tasks.errors import TaskSerializationError


def dumps_payload(value: Any) -> str:
    """Serialize a payload snapshot to JSON text."""

    try:
        return json.dumps(value, ensure_ascii=False, default=_to_jsonable)
    except (TypeError, ValueError) as error:
        raise TaskSerializationError(f"Payload is not JSON-serializable: {error}") from error


def loads_payload(raw: str) -> Any:
    """Deserialize a stored payload snapshot."""

    try:
        return json.loads(raw)
    except json.JSONDecodeError as error:
        raise TaskSerializationError("Stored task payload cannot be read") from error


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
