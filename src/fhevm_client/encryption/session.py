"""Encryption session builder.

Turns an ordered list of ``(value, kind)`` entries into one
``CiphertextBatch`` using exactly one provider round trip. Every entry
is queued before resolution so the provider issues a single proof that
covers the whole batch; proofs from separate sessions do not validate
together.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple, Union

from ..errors import AssemblyMismatch, BatchValidationError, EncryptionUnavailable
from ..handles import to_hex
from ..types import CiphertextBatch, EncryptedKind, PlaintextEntry, Readiness
from .provider import EncryptionProvider

logger = logging.getLogger(__name__)

PlaintextLike = Union[PlaintextEntry, Tuple[object, EncryptedKind]]


def _as_entry(item: PlaintextLike) -> PlaintextEntry:
    if isinstance(item, PlaintextEntry):
        return item
    value, kind = item
    return PlaintextEntry(value=value, kind=kind)


class EncryptionSessionBuilder:
    """Drives an encryption provider for one batch at a time."""

    def __init__(
        self, provider: Optional[EncryptionProvider], timeout: Optional[float] = None
    ):
        self.provider = provider
        self.timeout = timeout

    def readiness(
        self, contract_address: Optional[str], submitter: Optional[str]
    ) -> Readiness:
        """Report the first missing prerequisite for encryption, if any."""
        return Readiness.check(
            {
                "encryption provider": self.provider,
                "signer": submitter,
                "contract": contract_address,
            }
        )

    def can_encrypt(
        self, contract_address: Optional[str], submitter: Optional[str]
    ) -> bool:
        return self.readiness(contract_address, submitter).ready

    @staticmethod
    def prepare(plaintexts: Iterable[PlaintextLike]) -> List[PlaintextEntry]:
        """Normalize and range-check entries without touching the provider."""
        entries = []
        for index, item in enumerate(plaintexts):
            entry = _as_entry(item)
            if not isinstance(entry.kind, EncryptedKind):
                raise BatchValidationError(
                    f"Entry {index} has no explicit encrypted kind",
                    field=f"plaintexts[{index}].kind",
                    value=entry.kind,
                    expected="EncryptedKind",
                )
            entries.append(
                PlaintextEntry(value=entry.kind.validate(entry.value), kind=entry.kind)
            )
        if not entries:
            raise BatchValidationError(
                "At least one value is required to encrypt", field="plaintexts"
            )
        return entries

    async def encrypt_batch(
        self,
        contract_address: Optional[str],
        submitter: Optional[str],
        plaintexts: Iterable[PlaintextLike],
    ) -> CiphertextBatch:
        """Encrypt ``plaintexts`` in order and return their handles plus one proof.

        Raises:
            EncryptionUnavailable: provider, signer or contract is missing, or
                the provider round trip failed. Nothing is queued when a
                prerequisite is missing.
            BatchValidationError: an entry has no kind or is out of range.
            AssemblyMismatch: the provider returned a different number of
                handles than values queued.
        """
        readiness = self.readiness(contract_address, submitter)
        if not readiness:
            raise EncryptionUnavailable(readiness.missing)

        entries = self.prepare(plaintexts)

        session = self.provider.create_input_session(contract_address, submitter)
        for entry in entries:
            session.add(entry.value, entry.kind)

        logger.info(
            "Encrypting %d value(s) for contract %s", len(entries), contract_address
        )
        try:
            if self.timeout is not None:
                result = await asyncio.wait_for(session.resolve(), timeout=self.timeout)
            else:
                result = await session.resolve()
        except asyncio.TimeoutError as e:
            raise EncryptionUnavailable(
                "encryption result",
                f"Encryption timed out after {self.timeout} seconds",
                cause=e,
                retryable=True,
            ) from e
        except EncryptionUnavailable:
            raise
        except Exception as e:
            logger.warning("Encryption provider failed: %s", e)
            raise EncryptionUnavailable(
                "encryption result", f"Encryption failed: {e}", cause=e, retryable=True
            ) from e

        if len(result.handles) != len(entries):
            raise AssemblyMismatch(
                f"Provider returned {len(result.handles)} handle(s) "
                f"for {len(entries)} queued value(s)"
            )

        try:
            return CiphertextBatch(
                handles=tuple(result.handles),
                proof=to_hex(result.input_proof),
                contract_address=contract_address,
                submitter=submitter,
            )
        except (TypeError, ValueError) as e:
            raise EncryptionUnavailable(
                "encryption result", f"Provider returned an invalid handle: {e}", cause=e
            ) from e
