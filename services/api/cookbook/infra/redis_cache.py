import json
import logging
from typing import Any, Callable

from redis.exceptions import RedisError

from .redis_client import get_sync_redis

logger = logging.getLogger("cookbook.cache")


def get_or_set_json_sync(key: str, ttl_sec: int, compute_func: Callable[[], Any]) -> tuple[Any, bool]:
    """Return (value, cache_hit). A Redis outage degrades to computing every time."""
    try:
        r = get_sync_redis()
        raw = r.get(key)
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return compute_func(), False

    if raw:
        return json.loads(raw), True

    val = compute_func()
    try:
        r.set(key, json.dumps(val), ex=ttl_sec)
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")
    return val, False
