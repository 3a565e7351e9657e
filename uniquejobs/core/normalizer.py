"""
Argument normalization

Brings job arguments into a form with exactly one canonical JSON encoding,
so that e.g. ``{Color.RED: 1}`` and ``{"red": 1}`` hash identically.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, List, Sequence

from pydantic_core import to_jsonable_python

from ..utils.hashing import canonical_json

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool, type(None))


def _stringify(value: Any) -> str:
    logger.warning(
        f"normalize : no JSON form for {type(value).__qualname__}, using str()",
        extra={"event": "normalize.fallback", "value_type": type(value).__qualname__},
    )
    return str(value)


def normalize_key(key: Any) -> str:
    """Convert a mapping key to the string JSON would use for it."""
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return normalize_key(key.value)
    if key is True:
        return "true"
    if key is False:
        return "false"
    if key is None:
        return "null"
    if isinstance(key, (int, float)):
        return str(key)
    converted = normalize(key)
    return converted if isinstance(converted, str) else canonical_json(converted)


def normalize(value: Any) -> Any:
    """
    Recursively normalize a single argument value.

    Mappings become dicts with string keys, lists and tuples become lists,
    sets become lists sorted by their canonical encoding, enums become their
    value. Other types are converted with pydantic's JSON-able conversion;
    bytes become base64 text.

    Objects pydantic cannot convert fall back to ``str()`` and log a
    ``normalize.fallback`` warning. The default ``object.__str__`` includes a
    memory address, so such arguments only give stable digests when their
    class defines ``__str__``.
    """
    if isinstance(value, Enum):
        return normalize(value.value)
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, Mapping):
        return {normalize_key(k): normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((normalize(item) for item in value), key=canonical_json)

    converted = to_jsonable_python(value, bytes_mode="base64", fallback=_stringify)
    if isinstance(converted, (Mapping, list, tuple)):
        return normalize(converted)
    return converted


def normalize_args(args: Sequence[Any]) -> List[Any]:
    """Normalize a positional argument sequence."""
    return [normalize(arg) for arg in args]
