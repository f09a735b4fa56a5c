from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel

_DUMP_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE | orjson.OPT_PASSTHROUGH_DATACLASS


def load_json_document(path: Path) -> Any:
    if not path.exists():
        msg = f"File not found: {path}"
        raise FileNotFoundError(msg)
    return orjson.loads(path.read_bytes())


def _encode(value: Any) -> Any:
    # Layout outputs carry their own camelCase wire form; datasets dump by field name.
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    msg = f"Cannot serialise {type(value).__name__} to JSON"
    raise TypeError(msg)


def dump_json_bytes(payload: Any) -> bytes:
    return orjson.dumps(payload, default=_encode, option=_DUMP_OPTIONS)


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_bytes(dump_json_bytes(payload))
        tmp_path.replace(path)
    finally:
        tmp_path.unlink(missing_ok=True)
