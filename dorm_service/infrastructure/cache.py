import json
import redis
import structlog
from typing import Optional, Any
from ..config import settings

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

BUILDINGS_TREE_KEY = "buildings:tree"


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
    """Получить значение из кэша"""
    if not settings.CACHE_ENABLED:
        return None
    try:
        client = get_redis()
        value = client.get(key)
        if value:
            return json.loads(value)
    except Exception as e:
        # Redis недоступен: считаем промахом
        logger.warning("cache_get_failed", key=key, error=str(e))
    return None


def set_cache(key: str, value: Any, ttl: int = None) -> bool:
    """Сохранить значение в кэш"""
    if not settings.CACHE_ENABLED:
        return False
    try:
        client = get_redis()
        ttl = ttl or settings.CACHE_TTL
        client.setex(key, ttl, json.dumps(value, ensure_ascii=False))
        return True
    except Exception as e:
        logger.warning("cache_set_failed", key=key, error=str(e))
        return False


def versioned_key(base: str) -> Optional[str]:
    """Ключ текущего поколения: base:v<N>. None, если кэш выключен или недоступен.

    Читатель берёт ключ до запроса к БД. Если запись успела сменить поколение,
    устаревшее дерево ляжет под старый ключ, который больше никто не читает.
    """
    if not settings.CACHE_ENABLED:
        return None
    try:
        client = get_redis()
        version = client.get(f"{base}:version") or "0"
        return f"{base}:v{version}"
    except Exception as e:
        logger.warning("cache_version_failed", key=base, error=str(e))
        return None


def bump_version(base: str) -> bool:
    """Инвалидировать все значения base: следующее чтение пойдёт в БД"""
    if not settings.CACHE_ENABLED:
        return False
    try:
        client = get_redis()
        client.incr(f"{base}:version")
        return True
    except Exception as e:
        logger.warning("cache_invalidate_failed", key=base, error=str(e))
        return False
