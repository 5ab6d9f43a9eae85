import json
import time
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as redis_async

from loan_scoring.core.config import settings


class IdempotencyStore:
    """Remembers responses for client-supplied ``Idempotency-Key`` headers.

    Uses Redis when REDIS_URL is configured, otherwise a process-local dict
    with lazy expiry, which is enough for a single worker in development.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl_seconds: int = 24 * 3600):
        self.ttl_seconds = ttl_seconds
        self._client = redis_async.from_url(redis_url) if redis_url else None
        # key -> (value_json, expire_at)
        self._store: Dict[str, Tuple[str, float]] = {}

    @staticmethod
    def make_key(scope: str, owner_id: str, key: str) -> str:
        return f"idempotency:{scope}:{owner_id}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        if self._client is not None:
            raw = await self._client.get(key)
            return json.loads(raw) if raw else None

        entry = self._store.get(key)
        if not entry:
            return None
        value_json, expire_at = entry
        if expire_at < time.monotonic():
            del self._store[key]
            return None
        return json.loads(value_json)

    async def set(self, key: str, value: Any) -> None:
        raw = json.dumps(value)
        if self._client is not None:
            await self._client.set(key, raw, ex=self.ttl_seconds)
            return
        now = time.monotonic()
        self._purge_expired(now)
        self._store[key] = (raw, now + self.ttl_seconds)

    def _purge_expired(self, now: float) -> None:
        keys_to_delete = [k for k, (_, exp) in self._store.items() if exp < now]
        for k in keys_to_delete:
            del self._store[k]


# Singleton instance
_STORE: Optional[IdempotencyStore] = None


def get_idempotency_store() -> IdempotencyStore:
    global _STORE
    if _STORE is None:
        _STORE = IdempotencyStore(settings.REDIS_URL, settings.IDEMPOTENCY_TTL_SECONDS)
    return _STORE
