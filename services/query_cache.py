import time
from typing import Dict, Any, Optional, Tuple

from config import QUERY_CACHE_TTL_SECONDS

# (kind, session_id, statement) -> (stored_at, payload)
# kind is "query", "natural" or "schema"
_QUERY_CACHE: Dict[Tuple[str, str, str], Tuple[float, Any]] = {}


def get_cached(kind: str, session_id: str, key: str) -> Optional[Any]:
    entry = _QUERY_CACHE.get((kind, session_id, key))
    if entry is None:
        return None
    stored_at, payload = entry
    if time.time() - stored_at > QUERY_CACHE_TTL_SECONDS:
        _QUERY_CACHE.pop((kind, session_id, key), None)
        return None
    return payload


def store_cached(kind: str, session_id: str, key: str, payload: Any) -> None:
    _QUERY_CACHE[(kind, session_id, key)] = (time.time(), payload)


def clear_session_cache(session_id: str) -> None:
    for cache_key in [k for k in _QUERY_CACHE if k[1] == session_id]:
        _QUERY_CACHE.pop(cache_key, None)
