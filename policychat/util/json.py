"""JSON serialisation helpers."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

__all__ = ["make_json_safe"]


def make_json_safe(
    value: Any,
    *,
    max_string_length: int | None = None,
    default: Callable[[Any], str] | None = None,
) -> Any:
    """Return a structure compatible with :func:`json.dumps`.

    Mappings get string keys, tuples and sets become lists, dataclasses and
    pydantic models are converted to dictionaries and anything else falls back
    to *default* (``repr`` unless overridden).
    """

    if default is None:
        default = repr

    def _text(text: str) -> str:
        if max_string_length is None or len(text) <= max_string_length:
            return text
        return text[:max_string_length] + "…"

    def _convert(item: Any) -> Any:
        if item is None or isinstance(item, (bool, int, float)):
            return item
        if isinstance(item, str):
            return _text(item)
        if isinstance(item, Enum):
            return _convert(item.value)
        if isinstance(item, Mapping):
            return {_text(str(key)): _convert(val) for key, val in item.items()}
        if isinstance(item, (set, frozenset)):
            return sorted((_convert(part) for part in item), key=repr)
        if isinstance(item, Sequence) and not isinstance(item, (bytes, bytearray)):
            return [_convert(part) for part in item]
        if is_dataclass(item) and not isinstance(item, type):
            return _convert(asdict(item))
        dump = getattr(item, "model_dump", None)
        if callable(dump):
            return _convert(dump())
        return _text(default(item))

    return _convert(value)
