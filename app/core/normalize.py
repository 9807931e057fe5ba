from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Mapping, Optional

INT32_MAX = 2147483647

_INT_RE = re.compile(r"^\s*\d+\s*$")


def as_int(value: Any) -> Optional[int]:
    """Positive-or-zero integer from an int or a digit string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RE.match(value):
        return int(value)
    return None


def clean_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    s = str(value).strip()
    return s or None


def as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def without(mapping: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    drop = set(keys)
    return {k: v for k, v in mapping.items() if k not in drop}


def prune_blank(value: Any) -> Any:
    """Drop None and whitespace-only string values from nested mappings."""
    if not isinstance(value, Mapping):
        return value
    out = {}
    for k, v in value.items():
        if v is None or (isinstance(v, str) and not v.strip()):
            continue
        out[k] = prune_blank(v)
    return out
