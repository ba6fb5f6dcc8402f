import json
from dataclasses import asdict, is_dataclass
from enum import Enum


def _json_default(value):
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return str(value)


def safe_json_dumps(value, **kwargs):
    kwargs.setdefault("ensure_ascii", True)
    kwargs.setdefault("default", _json_default)
    return json.dumps(value, **kwargs)
