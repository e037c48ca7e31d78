# stocky/services/idempotency_guard.py

from typing import Optional

import msgspec

from ..clients.interfaces import CacheStore
from ..core.errors import StorageError
from ..core.logging import StockyLogger, log_with_context, INFO, DEBUG, WARNING
from ..types import IdempotencyClaim, IdempotentOutcome


PENDING = IdempotentOutcome(status="pending")


class IdempotencyGuard:
    """
    Claims caller-supplied idempotency keys exactly once.

    A claim is one atomic set-if-absent against the shared cache store, so
    it holds across processes. The first claimant stores a pending
    placeholder and later replaces it with the request's outcome; anyone
    else claiming the key inside the TTL gets that outcome back instead of
    running the request again.

    The pending placeholder is only a short lease, so a request that dies
    mid-flight frees its key quickly. complete() keeps the outcome for the
    full TTL.
    """

    KEY_PREFIX = "idempotency:"

    def __init__(self, cache: CacheStore, ttl_seconds: int = 86400, pending_ttl_seconds: int = 300):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.pending_ttl_seconds = min(pending_ttl_seconds, ttl_seconds)
        self.logger = StockyLogger.get_logger('services.idempotency_guard')

    def _cache_key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    def claim(self, key: str, lease_seconds: Optional[int] = None) -> IdempotencyClaim:
        if not key:
            # No key, nothing to guard; content-hash dedup still applies
            return IdempotencyClaim(claimed=True)

        lease = lease_seconds or self.pending_ttl_seconds
        # Second pass covers a holder whose lease lapsed between our two calls
        for _ in range(2):
            if self.cache.set_if_absent(self._cache_key(key), PENDING.encode(), lease):
                log_with_context(self.logger, DEBUG, "Idempotency key claimed",
                                 idempotency_key=key, lease_seconds=lease)
                return IdempotencyClaim(claimed=True)

            prior = self._load(key)
            if prior is not None:
                log_with_context(self.logger, INFO, "Idempotency key already claimed",
                                 idempotency_key=key, prior_status=prior.status)
                return IdempotencyClaim(claimed=False, prior_result=prior)

        log_with_context(self.logger, WARNING, "Idempotency key churned while claiming",
                         idempotency_key=key)
        return IdempotencyClaim(claimed=False, prior_result=None)

    def complete(self, key: str, outcome: IdempotentOutcome, ttl_seconds: Optional[int] = None) -> None:
        """Replace the pending placeholder with the final outcome"""
        if not key:
            return
        self.cache.set(self._cache_key(key), outcome.encode(), ttl_seconds or self.ttl_seconds)

    def release(self, key: str) -> None:
        """Give the key back after a request that left nothing behind"""
        if not key:
            return
        try:
            self.cache.delete(self._cache_key(key))
        except StorageError as e:
            # The lease still runs out on its own
            log_with_context(self.logger, WARNING, "Failed to release idempotency key",
                             idempotency_key=key, error=str(e))

    def _load(self, key: str) -> Optional[IdempotentOutcome]:
        raw = self.cache.get(self._cache_key(key))
        if raw is None:
            return None
        try:
            return IdempotentOutcome.decode(raw)
        except msgspec.DecodeError as e:
            raise StorageError(f"corrupt idempotency record for {key!r}") from e
