"""Decryption request coordinator.

Manages a decryption session: the current target requests, the
cleartext results resolved so far and the lifecycle state
``IDLE -> REQUESTED -> DECRYPTING -> RESOLVED | FAILED``.

Signing material is taken from (and stored into) the ``SignatureCache``
handed to the coordinator, so repeated ``decrypt`` calls for the same
signer and chain prompt the user only once. The all-zero handle is
resolved to 0 locally without any provider round trip.
"""

import asyncio
import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..errors import DecryptionFailure, WorkflowBusy
from ..handles import is_zero_handle, normalize_handle, short_handle
from ..types import DecryptionRequest, Readiness
from .cache import SignatureCache
from .provider import DecryptionProvider, DecryptionSignature, PublicDecryptionResult

logger = logging.getLogger(__name__)


class DecryptionState(Enum):
    """Lifecycle of a decryption session."""

    IDLE = "idle"
    REQUESTED = "requested"
    DECRYPTING = "decrypting"
    RESOLVED = "resolved"
    FAILED = "failed"


class DecryptionCoordinator:
    """Coordinates user and public decryption against a provider."""

    def __init__(
        self,
        provider: Optional[DecryptionProvider],
        cache: SignatureCache,
        signer: Any = None,
        chain_id: Optional[int] = None,
        timeout: Optional[float] = None,
        signature_duration_days: int = 365,
    ):
        self.provider = provider
        self.cache = cache
        self.timeout = timeout
        self.signature_duration_days = signature_duration_days
        self.signer = None
        self.chain_id = None

        self._requests: List[DecryptionRequest] = []
        self._results: Dict[str, int] = {}
        self._state = DecryptionState.IDLE
        self._error: Optional[DecryptionFailure] = None

        if signer is not None and chain_id is not None:
            self.set_signer(signer, chain_id)

    # ── Session state ────────────────────────────────────────────────

    @property
    def state(self) -> DecryptionState:
        return self._state

    @property
    def error(self) -> Optional[DecryptionFailure]:
        return self._error

    @property
    def is_decrypting(self) -> bool:
        return self._state is DecryptionState.DECRYPTING

    @property
    def requests(self) -> List[DecryptionRequest]:
        return list(self._requests)

    @property
    def results(self) -> Mapping[str, int]:
        """Read-only view of cleartexts resolved so far, keyed by handle."""
        return MappingProxyType(self._results)

    def result_for(self, handle: str) -> Optional[int]:
        return self._results.get(normalize_handle(handle))

    def set_signer(self, signer: Any, chain_id: int) -> None:
        """Switch signer/chain; cached signing material is dropped on change."""
        self.signer = signer
        self.chain_id = chain_id
        self.cache.bind(signer.address, chain_id)

    def set_requests(self, requests: Optional[Sequence[DecryptionRequest]]) -> None:
        """Set a new target handle set, resetting results and any error."""
        self._requests = [
            DecryptionRequest(
                handle=normalize_handle(r.handle) if r.has_handle else "",
                contract_address=r.contract_address,
            )
            for r in (requests or [])
        ]
        self._results = {}
        self._error = None
        self._state = (
            DecryptionState.REQUESTED if self._requests else DecryptionState.IDLE
        )

    def reset(self) -> None:
        self.set_requests(None)

    # ── Readiness ────────────────────────────────────────────────────

    def readiness(self, requests: Optional[Sequence[DecryptionRequest]] = None) -> Readiness:
        """Report the first missing prerequisite; makes no network call."""
        requests = self._requests if requests is None else list(requests)
        if not requests:
            return Readiness(missing="requests")
        for request in requests:
            if not request.has_handle:
                return Readiness(missing="handle")
            if not request.contract_address:
                return Readiness(missing="contract address")
        return Readiness.check(
            {
                "decryption provider": self.provider,
                "signer": self.signer,
                "chain id": self.chain_id,
            }
        )

    def can_decrypt(self, requests: Optional[Sequence[DecryptionRequest]] = None) -> bool:
        return self.readiness(requests).ready

    # ── User decryption ──────────────────────────────────────────────

    async def decrypt(
        self, requests: Optional[Sequence[DecryptionRequest]] = None
    ) -> Dict[str, int]:
        """Decrypt ``requests`` (the current target set when omitted).

        All non-zero handles are decrypted in one provider round trip.
        On success the cleartexts are merged into ``results``; handles
        resolved earlier and not part of this call are left untouched.
        On failure ``results`` is not modified.

        Raises:
            DecryptionFailure: a prerequisite is missing or the round trip failed.
            WorkflowBusy: another decryption is in flight on this coordinator.
        """
        if self.is_decrypting:
            raise WorkflowBusy("Decryption already in progress")

        requests = self._requests if requests is None else list(requests)
        if requests and all(r.is_complete for r in requests):
            requests = [
                DecryptionRequest(normalize_handle(r.handle), r.contract_address)
                for r in requests
            ]
            zero = {r.handle: 0 for r in requests if is_zero_handle(r.handle)}
            pending = [r for r in requests if r.handle not in zero]
            if not pending:
                logger.info("All requested handles are zero; skipping provider")
                self._merge(zero)
                self._state = DecryptionState.RESOLVED
                return dict(zero)
            readiness = self.readiness(pending)
        else:
            readiness = self.readiness(requests)

        if not readiness:
            raise DecryptionFailure(
                f"Cannot decrypt: missing {readiness.missing}",
                handles=[r.handle for r in requests],
            )

        handles = [r.handle for r in pending]
        self._state = DecryptionState.DECRYPTING
        self._error = None
        logger.info(
            "Decrypting %d handle(s): %s",
            len(handles),
            ", ".join(short_handle(h) for h in handles),
        )
        try:
            signature = await self._load_or_sign(pending)
            values = await self._with_timeout(
                self.provider.user_decrypt(pending, signature)
            )
            resolved = {}
            for handle in handles:
                value = self._lookup(values, handle)
                if value is None:
                    raise DecryptionFailure(
                        f"No cleartext value returned for handle {handle}",
                        handles=handles,
                    )
                resolved[handle] = value
        except DecryptionFailure as e:
            self._fail(e)
            raise
        except Exception as e:
            failure = DecryptionFailure(
                f"Decryption failed: {e}", handles=handles, cause=e
            )
            self._fail(failure)
            raise failure from e

        resolved.update(zero)
        self._merge(resolved)
        self._state = DecryptionState.RESOLVED
        return resolved

    async def _load_or_sign(self, requests: List[DecryptionRequest]) -> DecryptionSignature:
        contracts = sorted({r.contract_address for r in requests}, key=str.lower)
        cached = self.cache.get(self.signer.address, self.chain_id, contracts)
        if cached is not None:
            logger.debug("Reusing cached decryption signature")
            return cached

        # Keep previously authorized contracts in scope so alternating
        # between them does not prompt again.
        previous = self.cache.get(self.signer.address, self.chain_id, [])
        if previous is not None:
            contracts = sorted(
                set(contracts) | set(previous.contract_addresses), key=str.lower
            )

        logger.info("Requesting decryption signature for %d contract(s)", len(contracts))
        signature = await self._with_timeout(
            self.provider.create_signature(
                self.signer, self.chain_id, contracts, self.signature_duration_days
            )
        )
        self.cache.put(signature)
        return signature

    # ── Public decryption ────────────────────────────────────────────

    async def public_decrypt(self, handles: Sequence[str]) -> PublicDecryptionResult:
        """Decrypt publicly decryptable handles; no signing material needed.

        Returned cleartexts are merged into ``results``. The provider's
        result object is left untouched; a filtered copy is returned.

        Raises:
            DecryptionFailure: no provider, no handles or the round trip failed.
            WorkflowBusy: another decryption is in flight on this coordinator.
        """
        if self.is_decrypting:
            raise WorkflowBusy("Decryption already in progress")
        if not self.provider:
            raise DecryptionFailure(
                "Cannot decrypt: missing decryption provider", handles=list(handles)
            )
        normalized = [normalize_handle(h) for h in handles]
        if not normalized:
            raise DecryptionFailure("Cannot decrypt: missing handle")

        self._state = DecryptionState.DECRYPTING
        self._error = None
        try:
            result = await self._with_timeout(self.provider.public_decrypt(normalized))
        except DecryptionFailure as e:
            self._fail(e)
            raise
        except Exception as e:
            failure = DecryptionFailure(
                f"Public decryption failed: {e}", handles=normalized, cause=e
            )
            self._fail(failure)
            raise failure from e

        clear_values = {}
        for handle in normalized:
            value = self._lookup(result.clear_values, handle)
            if value is not None:
                clear_values[handle] = value
        self._merge(clear_values)
        self._state = DecryptionState.RESOLVED
        return PublicDecryptionResult(
            clear_values=clear_values,
            abi_encoded_clear_values=result.abi_encoded_clear_values,
            decryption_proof=result.decryption_proof,
        )

    # ── Helpers ──────────────────────────────────────────────────────

    async def _with_timeout(self, awaitable):
        if self.timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise DecryptionFailure(
                f"Decryption timed out after {self.timeout} seconds", cause=e
            ) from e

    @staticmethod
    def _lookup(values: Mapping[str, Any], handle: str) -> Optional[int]:
        if handle in values:
            return values[handle]
        for key, value in values.items():
            if normalize_handle(key) == handle:
                return value
        return None

    def _merge(self, values: Dict[str, int]) -> None:
        self._results = {**self._results, **values}

    def _fail(self, failure: DecryptionFailure) -> None:
        logger.warning("Decryption failed: %s", failure.message)
        self._error = failure
        self._state = DecryptionState.FAILED
