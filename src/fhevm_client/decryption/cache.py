"""Signing-material cache for user decryption.

One cache is owned per application session and handed to the
coordinator. Entries are keyed by (user address, chain id). The
underlying mapping is never mutated in place: every write, and every
invalidation after a signer or chain switch, swaps in a new dict, so
concurrent readers always see a consistent snapshot.
"""

import logging
import threading
from typing import Dict, Iterable, Optional, Tuple

from .provider import DecryptionSignature

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, int]


class SignatureCache:
    """In-memory store of decryption signatures."""

    def __init__(self):
        self._entries: Dict[CacheKey, DecryptionSignature] = {}
        self._binding: Optional[CacheKey] = None
        self._lock = threading.Lock()

    @staticmethod
    def _key(user_address: str, chain_id: int) -> CacheKey:
        return (user_address.lower(), int(chain_id))

    @property
    def binding(self) -> Optional[CacheKey]:
        """The (user, chain) pair the cache currently serves."""
        return self._binding

    def bind(self, user_address: str, chain_id: int) -> bool:
        """Bind to a signer and chain; drops every entry if either changed.

        Returns True when the cache was invalidated.
        """
        key = self._key(user_address, chain_id)
        with self._lock:
            if self._binding == key:
                return False
            invalidated = self._binding is not None
            self._binding = key
            self._entries = {}
        if invalidated:
            logger.info("Signer or chain changed; decryption signatures discarded")
        return invalidated

    def get(
        self,
        user_address: str,
        chain_id: int,
        contract_addresses: Iterable[str],
        now: float = None,
    ) -> Optional[DecryptionSignature]:
        """Return a cached signature that is still valid and covers the contracts."""
        entry = self._entries.get(self._key(user_address, chain_id))
        if entry is None:
            return None
        if not entry.is_valid(now) or not entry.covers(contract_addresses):
            return None
        return entry

    def put(self, signature: DecryptionSignature) -> None:
        key = self._key(signature.user_address, signature.chain_id)
        with self._lock:
            self._entries = {**self._entries, key: signature}

    def invalidate(self) -> None:
        """Drop all entries and the current binding."""
        with self._lock:
            self._entries = {}
            self._binding = None

    def __len__(self) -> int:
        return len(self._entries)
