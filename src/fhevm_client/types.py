"""Core value types for encrypted-input marshalling and decryption.

All types here are immutable. ``ParameterDescriptor`` is the tagged
variant (plain / encrypted(kind) / proof) produced once per function
signature by the schema analyzer and consumed by the parameter
assembler; ``CiphertextBatch`` is the single result of one encryption
round trip and remembers which (contract, submitter) pair produced it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from web3 import Web3

from .errors import BatchValidationError
from .handles import normalize_handle

# Internal-type prefix emitted by the FHEVM Solidity compiler plugin for
# encrypted inputs, e.g. ``externalEuint64`` or ``externalEbool``.
ENCRYPTED_TYPE_MARKER = "externalE"

# Parameter names conventionally used for the shared validity proof.
PROOF_PARAMETER_NAMES = ("inputProof", "proof")


class EncryptedKind(Enum):
    """Plaintext kinds accepted by the encryption provider."""

    BOOL = "bool"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINT128 = "uint128"
    UINT256 = "uint256"
    ADDRESS = "address"

    @property
    def bits(self) -> int:
        if self is EncryptedKind.BOOL:
            return 1
        if self is EncryptedKind.ADDRESS:
            return 160
        return int(self.value[len("uint"):])

    @property
    def max_value(self) -> int:
        return 2 ** self.bits - 1

    @classmethod
    def from_suffix(cls, suffix: str) -> "EncryptedKind":
        """Map an internal-type suffix (``uint64``, ``bool``, ``address``) to a kind."""
        try:
            return cls(suffix)
        except ValueError:
            raise ValueError(f"Unknown encrypted kind suffix: {suffix!r}") from None

    def validate(self, value: Any) -> Any:
        """Check that ``value`` fits this kind and return it in provider form."""
        if self is EncryptedKind.BOOL:
            if isinstance(value, bool):
                return value
            if isinstance(value, int) and value in (0, 1):
                return bool(value)
            raise BatchValidationError(
                f"Expected a boolean for {self.value}, got {value!r}",
                field="value",
                value=value,
                expected="bool",
            )

        if self is EncryptedKind.ADDRESS:
            if isinstance(value, str) and Web3.is_address(value):
                return Web3.to_checksum_address(value)
            raise BatchValidationError(
                f"Expected an address for {self.value}, got {value!r}",
                field="value",
                value=value,
                expected="address",
            )

        if isinstance(value, bool) or not isinstance(value, int):
            raise BatchValidationError(
                f"Expected an integer for {self.value}, got {type(value).__name__}",
                field="value",
                value=value,
                expected="int",
            )
        if value < 0 or value > self.max_value:
            raise BatchValidationError(
                f"Amount exceeds {self.value} range (0..{self.max_value})",
                field="value",
                value=value,
                expected=f"0..{self.max_value}",
            )
        return value


class ParameterRole(Enum):
    """Role of a declared function parameter in an encrypted call."""

    PLAIN = "plain"
    ENCRYPTED = "encrypted"
    PROOF = "proof"


@dataclass(frozen=True)
class ParameterDescriptor:
    """One classified function parameter."""

    name: str
    declared_type: str
    role: ParameterRole
    position: int
    kind: Optional[EncryptedKind] = None
    internal_type: Optional[str] = None

    def __post_init__(self):
        if self.role is ParameterRole.ENCRYPTED and self.kind is None:
            raise ValueError(f"Encrypted parameter {self.name!r} requires a kind")
        if self.role is not ParameterRole.ENCRYPTED and self.kind is not None:
            raise ValueError(f"Only encrypted parameters carry a kind ({self.name!r})")
        if self.position < 0:
            raise ValueError("Parameter position must be non-negative")

    @property
    def is_array(self) -> bool:
        return self.declared_type.endswith("]")

    @property
    def label(self) -> str:
        return f"{self.name or '<unnamed>'}@{self.position} ({self.declared_type})"

    def __str__(self) -> str:
        if self.role is ParameterRole.ENCRYPTED:
            return f"Encrypted({self.kind.value})@{self.position}"
        return f"{self.role.value.capitalize()}@{self.position}"


@dataclass(frozen=True)
class PlaintextEntry:
    """A value queued for encryption together with its explicit kind."""

    value: Any
    kind: EncryptedKind


@dataclass(frozen=True)
class CiphertextBatch:
    """Handles plus the one shared proof from a single encryption round trip."""

    handles: Tuple[str, ...]
    proof: str
    contract_address: str
    submitter: str

    def __post_init__(self):
        object.__setattr__(
            self, "handles", tuple(normalize_handle(h) for h in self.handles)
        )

    def __len__(self) -> int:
        return len(self.handles)

    def belongs_to(self, contract_address: str, submitter: str) -> bool:
        """True when this batch was produced for the given contract/submitter pair."""
        return (
            self.contract_address.lower() == contract_address.lower()
            and self.submitter.lower() == submitter.lower()
        )


@dataclass(frozen=True)
class DecryptionRequest:
    """A handle to decrypt and the contract that owns it."""

    handle: str
    contract_address: str

    @property
    def has_handle(self) -> bool:
        """False for a missing handle, including a bare ``0x``."""
        if isinstance(self.handle, str) and self.handle.lower().startswith("0x"):
            return bool(self.handle[2:])
        return bool(self.handle) or self.handle == 0

    @property
    def is_complete(self) -> bool:
        return self.has_handle and bool(self.contract_address)


@dataclass(frozen=True)
class Readiness:
    """Outcome of a prerequisite check, naming the first missing piece."""

    missing: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.missing is None

    def __bool__(self) -> bool:
        return self.ready

    @classmethod
    def check(cls, prerequisites: Dict[str, Any]) -> "Readiness":
        """Return the first prerequisite (in insertion order) that is falsy."""
        for name, value in prerequisites.items():
            if not value:
                return cls(missing=name)
        return cls()


@dataclass
class OperationResult:
    """Outcome of a confirmed write operation."""

    transaction_hash: str
    block_number: int
    confirmations: int
    explorer_url: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
            "confirmations": self.confirmations,
            "explorer_url": self.explorer_url,
            "detail": self.detail,
        }
