import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import httpx

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


def safe_float(x: Any) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(f) or math.isinf(f) else f


def pct_change(cur: Optional[float], base: Optional[float]) -> Optional[float]:
    if cur is None or base in (None, 0):
        return None
    return (cur / base - 1.0) * 100.0


def plain_number(x: float) -> str:
    """Render 150.0 as '150' and 150.25 as '150.25' for prompts."""
    f = float(x)
    if f.is_integer():
        return str(int(f))
    return repr(f)


def safe_json(resp: httpx.Response) -> JsonValue:
    try:
        return resp.json()
    except ValueError:
        return None


def as_utc(value: datetime) -> datetime:
    """SQLite drops the offset on read; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
