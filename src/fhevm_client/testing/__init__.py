"""Test doubles for the encryption and decryption providers."""

from .mocks import (
    MockCoprocessor,
    MockDecryptionProvider,
    MockEncryptedInput,
    MockEncryptionProvider,
    StoredCiphertext,
)

__all__ = [
    "MockCoprocessor",
    "MockDecryptionProvider",
    "MockEncryptedInput",
    "MockEncryptionProvider",
    "StoredCiphertext",
]
