"""
Utilities for deterministic serialization and hashing of uniqueness structures.

Identical structures must produce byte-identical JSON in every process, so the
encoder sorts keys and uses fixed separators. The digest is MD5: it is used for
content addressing only, never for security.
"""

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """
    Serialize a JSON-able value deterministically.

    Keys are sorted at every level and no insignificant whitespace is emitted.
    Non-ASCII characters are written as UTF-8 rather than escaped.

    Examples:
        >>> canonical_json({"queue": "low", "class": "ReportJob"})
        '{"class":"ReportJob","queue":"low"}'
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def md5_hexdigest(data: str) -> str:
    """Return the 32 character hex MD5 digest of a UTF-8 encoded string."""
    return hashlib.md5(data.encode("utf-8"), usedforsecurity=False).hexdigest()


def compute_structure_hash(value: Any) -> str:
    """
    Compute the deterministic 128-bit hash of a JSON-able structure.

    Args:
        value: Normalized structure (dicts, lists, scalars)

    Returns:
        str: 32 character hex digest of the canonical JSON form
    """
    return md5_hexdigest(canonical_json(value))


def structures_are_equivalent(first: Any, second: Any) -> bool:
    """
    Check if two structures are equivalent for uniqueness purposes.

    Returns:
        bool: True if both structures produce the same hash
    """
    return compute_structure_hash(first) == compute_structure_hash(second)
