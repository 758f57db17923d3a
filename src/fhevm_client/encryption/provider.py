"""Encryption provider interfaces.

The cryptography lives outside this library. A provider hands out one
input session per (contract, submitter) pair; values are queued on the
session and a single ``resolve`` call returns every handle plus one
proof covering the whole queue.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List

from ..types import EncryptedKind


@dataclass
class EncryptedInputResult:
    """Raw provider output: one handle per queued value and a shared proof."""

    handles: List[bytes]
    input_proof: bytes


class EncryptedInput(ABC):
    """An open input session bound to one contract and submitter."""

    @abstractmethod
    def add(self, value: Any, kind: EncryptedKind) -> None:
        """Queue a value for encryption as ``kind``."""
        pass

    @abstractmethod
    async def resolve(self) -> EncryptedInputResult:
        """Encrypt everything queued so far in one round trip."""
        pass


class EncryptionProvider(ABC):
    """Factory for encrypted input sessions."""

    @abstractmethod
    def create_input_session(self, contract_address: str, submitter: str) -> EncryptedInput:
        """Open an input session for ``submitter`` calling ``contract_address``."""
        pass
