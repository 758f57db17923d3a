"""
Unit tests for the parameter assembler.
"""

import pytest

from fhevm_client.abi import EBATCHER_ABI, EWETH_ABI, classify
from fhevm_client.assembler import assemble, encode_handle
from fhevm_client.errors import AssemblyMismatch
from fhevm_client.handles import handle_to_int
from fhevm_client.types import CiphertextBatch

CONTRACT = "0x" + "aa" * 20
SUBMITTER = "0x" + "bb" * 20
H0 = "0x" + "10" * 32
H1 = "0x" + "11" * 32
H2 = "0x" + "12" * 32
PROOF = "0xdeadbeef"
TOKEN = "0x" + "cc" * 20
RECIPIENT = "0x" + "01" * 20


def batch(*handles):
    return CiphertextBatch(
        handles=handles, proof=PROOF, contract_address=CONTRACT, submitter=SUBMITTER
    )


TRANSFER_ABI = [
    {
        "type": "function",
        "name": "confidentialTransfer",
        "inputs": [
            {"name": "token", "type": "address", "internalType": "address"},
            {"name": "recipient", "type": "address", "internalType": "address"},
            {"name": "amount", "type": "bytes32", "internalType": "externalEuint64"},
            {"name": "inputProof", "type": "bytes", "internalType": "bytes"},
        ],
    },
    {
        "type": "function",
        "name": "two",
        "inputs": [
            {"name": "a", "type": "uint256", "internalType": "externalEuint32"},
            {"name": "to", "type": "address", "internalType": "address"},
            {"name": "b", "type": "bytes32", "internalType": "externalEbool"},
            {"name": "inputProof", "type": "bytes", "internalType": "bytes"},
        ],
    },
]


class TestScalarMode:
    """Test one handle per encrypted slot."""

    def test_transfer_example(self):
        descriptors = classify(TRANSFER_ABI, "confidentialTransfer")

        args = assemble(descriptors, batch(H0), [TOKEN, RECIPIENT])

        assert args == [TOKEN, RECIPIENT, H0, PROOF]

    def test_handles_fill_in_declaration_order(self):
        descriptors = classify(TRANSFER_ABI, "two")

        args = assemble(descriptors, batch(H0, H1), [RECIPIENT])

        assert args == [handle_to_int(H0), RECIPIENT, H1, PROOF]

    def test_proof_only_plus_handle(self):
        descriptors = classify(EWETH_ABI, "withdraw")
        assert assemble(descriptors, batch(H0)) == [H0, PROOF]

    def test_missing_plain_value_names_parameter(self):
        descriptors = classify(TRANSFER_ABI, "confidentialTransfer")

        with pytest.raises(AssemblyMismatch, match="recipient") as exc_info:
            assemble(descriptors, batch(H0), [TOKEN])

        assert exc_info.value.parameter == "recipient"
        assert "Expected more than 1 additional params" in exc_info.value.message

    def test_missing_handle(self):
        descriptors = classify(TRANSFER_ABI, "two")

        with pytest.raises(AssemblyMismatch) as exc_info:
            assemble(descriptors, batch(H0), [RECIPIENT])
        assert exc_info.value.parameter == "b"

    def test_unused_handle(self):
        descriptors = classify(TRANSFER_ABI, "confidentialTransfer")

        with pytest.raises(AssemblyMismatch, match="left unused"):
            assemble(descriptors, batch(H0, H1), [TOKEN, RECIPIENT])

    def test_unused_plain_value(self):
        descriptors = classify(TRANSFER_ABI, "confidentialTransfer")

        with pytest.raises(AssemblyMismatch, match="extra plain"):
            assemble(descriptors, batch(H0), [TOKEN, RECIPIENT, "surplus"])


class TestBatchVariadicMode:
    """Test array-typed encrypted slots."""

    def test_different_amounts(self):
        descriptors = classify(EBATCHER_ABI, "batchSendTokenDifferentAmounts")
        recipients = [RECIPIENT, "0x" + "02" * 20]

        args = assemble(
            descriptors, batch(H0, H1), [TOKEN, recipients], array_lengths={"amounts": 2}
        )

        assert args == [TOKEN, recipients, [H0, H1], PROOF]

    def test_array_defaults_to_remaining_handles(self):
        descriptors = classify(EBATCHER_ABI, "batchSendTokenDifferentAmounts")

        args = assemble(descriptors, batch(H0, H1, H2), [TOKEN, [RECIPIENT] * 3])

        assert args[2] == [H0, H1, H2]

    def test_array_length_exceeds_batch(self):
        descriptors = classify(EBATCHER_ABI, "batchSendTokenDifferentAmounts")

        with pytest.raises(AssemblyMismatch, match="amounts"):
            assemble(descriptors, batch(H0), [TOKEN, [RECIPIENT]], array_lengths={"amounts": 2})


class TestEncodeHandle:
    """Test ABI encoding of handles."""

    def test_bytes32_kept_as_hex(self):
        assert encode_handle(H0, "bytes32") == H0
        assert encode_handle(H0, "bytes32[]") == H0

    def test_uint256_as_int(self):
        assert encode_handle(H0, "uint256") == int("10" * 32, 16)
