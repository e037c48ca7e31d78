"""
Interfaces for the external stores the reward engine depends on.

Every shared mutable state lives behind one of these so that the services
stay correct across processes and tests can swap in in-memory versions.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..types import PriceQuote


class CacheStore(ABC):
    """Shared key/value store with TTLs and atomic conditional writes."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value, or None when absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Unconditionally store a value with a TTL."""
        pass

    @abstractmethod
    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """
        Atomically store the value only if the key does not exist.

        Returns:
            True when this call created the key
        """
        pass

    @abstractmethod
    def set_if_newer(self, key: str, value: str, timestamp_us: int, ttl_seconds: int) -> bool:
        """
        Atomically store the value unless the stored one carries a newer timestamp.

        Values written through this method must be encoded as
        ``<payload>|<timestamp_us>`` so the stored timestamp can be compared.

        Returns:
            True when the value was written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class PriceSource(ABC):
    """Where fresh quotes come from."""

    @abstractmethod
    def fetch_quote(self, symbol: str, as_of: datetime) -> PriceQuote:
        pass


class PriceSourceError(Exception):
    """The price source could not produce a quote"""
