"""User and public decryption of ciphertext handles."""

from .cache import SignatureCache
from .coordinator import DecryptionCoordinator, DecryptionState
from .provider import DecryptionProvider, DecryptionSignature, PublicDecryptionResult

__all__ = [
    "DecryptionCoordinator",
    "DecryptionState",
    "DecryptionProvider",
    "DecryptionSignature",
    "PublicDecryptionResult",
    "SignatureCache",
]
