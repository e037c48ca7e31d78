# stocky/clients/redis_cache.py

from typing import Optional

import redis

from .interfaces import CacheStore
from ..core.errors import StorageError
from ..core.logging import StockyLogger, log_with_context, INFO, ERROR
from ..types import RedisConfig


# Compares the timestamp suffix of the stored value with ARGV[2] and only
# overwrites when the incoming one is not older.
_SET_IF_NEWER_LUA = """
local current = redis.call('GET', KEYS[1])
if current then
    local stored_ts = tonumber(string.match(current, '|(%d+)$'))
    if stored_ts and stored_ts > tonumber(ARGV[2]) then
        return 0
    end
end
redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[3])
return 1
"""


class RedisCacheStore(CacheStore):
    def __init__(self, config: RedisConfig, client: Optional[redis.Redis] = None):
        self.config = config
        self.client = client or redis.Redis.from_url(
            config.url,
            decode_responses=True,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
        )
        self._set_if_newer = self.client.register_script(_SET_IF_NEWER_LUA)
        self.logger = StockyLogger.get_logger('clients.redis_cache')

        log_with_context(self.logger, INFO, "RedisCacheStore initialized",
                         socket_timeout=config.socket_timeout)

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise self._storage_error("get", key, e)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as e:
            raise self._storage_error("set", key, e)

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            return bool(self.client.set(key, value, ex=ttl_seconds, nx=True))
        except redis.RedisError as e:
            raise self._storage_error("set_if_absent", key, e)

    def set_if_newer(self, key: str, value: str, timestamp_us: int, ttl_seconds: int) -> bool:
        try:
            return bool(self._set_if_newer(keys=[key], args=[value, timestamp_us, ttl_seconds]))
        except redis.RedisError as e:
            raise self._storage_error("set_if_newer", key, e)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            raise self._storage_error("delete", key, e)

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            log_with_context(self.logger, ERROR, "Redis health check failed", error=str(e))
            return False

    def close(self) -> None:
        self.client.close()

    def _storage_error(self, operation: str, key: str, error: Exception) -> StorageError:
        log_with_context(self.logger, ERROR, "Redis operation failed",
                         operation=operation, key=key, error=str(error),
                         exception_type=type(error).__name__)
        return StorageError(f"cache {operation} failed for {key}: {error}")
