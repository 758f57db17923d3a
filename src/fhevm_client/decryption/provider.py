"""Decryption provider interfaces.

User decryption needs signing material (an ephemeral keypair plus an
EIP-712 authorization signed by the user) that covers a set of
contracts for a validity window. Public decryption needs no signature
and returns the cleartexts together with a proof the contract can
verify.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from ..types import DecryptionRequest

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class DecryptionSignature:
    """Signing material authorizing user decryption for a set of contracts."""

    user_address: str
    chain_id: int
    contract_addresses: Tuple[str, ...]
    public_key: str
    private_key: str
    signature: str
    start_timestamp: int
    duration_days: int

    @property
    def expires_at(self) -> int:
        return self.start_timestamp + self.duration_days * SECONDS_PER_DAY

    def is_valid(self, now: float = None) -> bool:
        now = time.time() if now is None else now
        return self.start_timestamp <= now < self.expires_at

    def covers(self, contract_addresses: Iterable[str]) -> bool:
        """True when every contract is within this signature's scope."""
        scope = {address.lower() for address in self.contract_addresses}
        return all(address.lower() in scope for address in contract_addresses)


@dataclass
class PublicDecryptionResult:
    """Cleartexts for publicly decryptable handles plus the verification proof."""

    clear_values: Dict[str, int] = field(default_factory=dict)
    abi_encoded_clear_values: str = "0x"
    decryption_proof: str = "0x"


class DecryptionProvider(ABC):
    """Round-trip access to the decryption service."""

    @abstractmethod
    async def create_signature(
        self,
        signer: Any,
        chain_id: int,
        contract_addresses: Sequence[str],
        duration_days: int,
    ) -> DecryptionSignature:
        """Generate a keypair and have ``signer`` authorize it (prompts the user)."""
        pass

    @abstractmethod
    async def user_decrypt(
        self, requests: List[DecryptionRequest], signature: DecryptionSignature
    ) -> Dict[str, int]:
        """Decrypt handles the signer is allowed to read."""
        pass

    @abstractmethod
    async def public_decrypt(self, handles: List[str]) -> PublicDecryptionResult:
        """Decrypt handles a contract has marked publicly decryptable."""
        pass
