"""JSONL event sink for loop and maintenance telemetry.

Records look like ``{"ts": ..., "event": ..., "data": {...}}``.  Payload values
are reduced to JSON types first: enums to their value, numpy scalars and
arrays to Python numbers and lists, objects exposing ``to_dict`` (affective
fields, snapshots, sommeil metrics) to that dict.
"""

from __future__ import annotations

import json
import os
import time
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

import numpy as np

DEFAULT_LOG = "logs/telemetry_events.jsonl"
ENV_LOG = "MONGARS_TELEMETRY_LOG"

_SCALARS = (str, int, float, bool, type(None))


def default_log_path() -> Path:
    return Path(os.getenv(ENV_LOG, DEFAULT_LOG))


def make_record(name: str, payload: Mapping[str, Any], *, ts: Optional[float] = None) -> dict:
    data = _json_safe(dict(payload))
    return {"ts": time.time() if ts is None else float(ts), "event": str(name), "data": data}


def event(name: str, payload: Mapping[str, Any], *, log_path: str | Path | None = None) -> dict:
    """Append one event line and return the record that was written."""
    record = make_record(name, payload)
    target = Path(log_path) if log_path else default_log_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(record, ensure_ascii=False)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(line + "\n")
    return record


def _json_safe(value: Any) -> Any:
    # Enum first: str-Enums would otherwise pass as plain strings
    if isinstance(value, Enum):
        return _json_safe(value.value)
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, (np.generic, np.ndarray)):
        return value.tolist()
    if isinstance(value, Mapping):
        return {str(key): _json_safe(item) for key, item in value.items()}
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _json_safe(to_dict())
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


__all__ = ["DEFAULT_LOG", "ENV_LOG", "default_log_path", "event", "make_record"]
