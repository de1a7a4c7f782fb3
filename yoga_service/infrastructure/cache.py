import json
from typing import Any, Callable, Optional

import redis
import structlog

from ..config import settings
from .metrics import cache_hits_total, cache_misses_total

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

# ключи публичных витрин каталога
CATALOG_PREFIX = "catalog:"


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client


def get_cache(key: str) -> Optional[Any]:
    """Получить значение из кэша; недоступный Redis считается промахом"""
    try:
        value = get_redis().get(key)
    except redis.RedisError as e:
        logger.warning("cache_unavailable", op="get", key=key, error=str(e))
        return None
    return json.loads(value) if value else None


def set_cache(key: str, value: Any, ttl: int | None = None) -> bool:
    try:
        get_redis().setex(key, ttl or settings.CACHE_TTL, json.dumps(value, ensure_ascii=False, default=str))
        return True
    except redis.RedisError as e:
        logger.warning("cache_unavailable", op="set", key=key, error=str(e))
        return False


def invalidate_catalog() -> int:
    """Сбросить все витрины каталога после изменения классов или записей"""
    try:
        client = get_redis()
        keys = list(client.scan_iter(match=f"{CATALOG_PREFIX}*"))
        return client.delete(*keys) if keys else 0
    except redis.RedisError as e:
        logger.warning("cache_unavailable", op="invalidate", error=str(e))
        return 0


def cached(key: str, loader: Callable[[], Any], ttl: int | None = None) -> Any:
    hit = get_cache(key)
    if hit is not None:
        cache_hits_total.inc()
        return hit
    cache_misses_total.inc()
    value = loader()
    set_cache(key, value, ttl)
    return value
