"""Encrypted input construction."""

from .provider import EncryptedInput, EncryptedInputResult, EncryptionProvider
from .session import EncryptionSessionBuilder

__all__ = [
    "EncryptedInput",
    "EncryptedInputResult",
    "EncryptionProvider",
    "EncryptionSessionBuilder",
]
