"""Shared fixtures for fhevm-client tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account
from web3 import Web3

from fhevm_client.abi import EBATCHER_ABI, ERC7984_ABI, EWETH_ABI
from fhevm_client.chain import ConfirmedTransaction
from fhevm_client.config import ClientConfig
from fhevm_client.decryption import DecryptionCoordinator, SignatureCache
from fhevm_client.encryption import EncryptionSessionBuilder
from fhevm_client.testing import (
    MockCoprocessor,
    MockDecryptionProvider,
    MockEncryptionProvider,
)

BATCHER_ADDRESS = Web3.to_checksum_address("0x" + "aa" * 20)
TOKEN_ADDRESS = Web3.to_checksum_address("0x" + "cc" * 20)
EWETH_ADDRESS = Web3.to_checksum_address("0x" + "ee" * 20)
RECIPIENTS = [
    Web3.to_checksum_address("0x" + "01" * 20),
    Web3.to_checksum_address("0x" + "02" * 20),
    Web3.to_checksum_address("0x" + "03" * 20),
]
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def account():
    return Account.from_key("0x" + "11" * 32)


@pytest.fixture
def other_account():
    return Account.from_key("0x" + "22" * 32)


@pytest.fixture
def config():
    return ClientConfig(confirmation_poll_interval=0.01, confirmation_timeout=1.0)


@pytest.fixture
def coprocessor():
    return MockCoprocessor()


@pytest.fixture
def encryption(coprocessor):
    return EncryptionSessionBuilder(MockEncryptionProvider(coprocessor))


@pytest.fixture
def decryption_provider(coprocessor):
    return MockDecryptionProvider(coprocessor)


@pytest.fixture
def coordinator(decryption_provider, account):
    return DecryptionCoordinator(
        decryption_provider, SignatureCache(), signer=account, chain_id=31337
    )


def confirmed(block_number=100, confirmations=2, receipt=None):
    return ConfirmedTransaction(
        transaction_hash=TX_HASH,
        block_number=block_number,
        confirmations=confirmations,
        receipt=receipt or {"status": 1, "blockNumber": block_number, "logs": []},
    )


def make_gateway(address, abi, account, config):
    """A stand-in ``ContractGateway`` whose network methods are AsyncMocks."""
    gateway = MagicMock()
    gateway.address = address
    gateway.abi = list(abi)
    gateway.account = account
    gateway.sender = account.address if account is not None else None
    gateway.config = config
    gateway.call = AsyncMock()
    gateway.get_code = AsyncMock(return_value=b"\x60\x80")
    gateway.submit = AsyncMock(return_value=TX_HASH)
    gateway.wait_for_confirmations = AsyncMock(return_value=confirmed())
    gateway.decode_events = MagicMock(return_value=[])
    return gateway


@pytest.fixture
def token_gateway(account, config):
    return make_gateway(TOKEN_ADDRESS, ERC7984_ABI, account, config)


@pytest.fixture
def batcher_gateway(account, config, token_gateway):
    gateway = make_gateway(BATCHER_ADDRESS, EBATCHER_ABI, account, config)
    gateway.call = AsyncMock(return_value=10)
    gateway.at = MagicMock(return_value=token_gateway)
    return gateway


@pytest.fixture
def eweth_gateway(account, config):
    return make_gateway(EWETH_ADDRESS, EWETH_ABI, account, config)
