"""
Unit tests for the batched transfer workflow.
"""

from unittest.mock import AsyncMock

import pytest

from conftest import BATCHER_ADDRESS, RECIPIENTS, TOKEN_ADDRESS, TX_HASH
from fhevm_client.abi import ERC7984_ABI
from fhevm_client.encryption import EncryptionSessionBuilder
from fhevm_client.errors import (
    AuthorizationRequired,
    BatchValidationError,
    ContractCallFailure,
    EncryptionUnavailable,
    SubmissionFailure,
    WorkflowBusy,
)
from fhevm_client.workflows import BatchTransferWorkflow


@pytest.fixture
def statuses():
    return []


@pytest.fixture
def workflow(batcher_gateway, encryption, token_gateway, statuses):
    token_gateway.call = AsyncMock(return_value=True)
    return BatchTransferWorkflow(batcher_gateway, encryption, on_status=statuses.append)


def submitted_args(gateway):
    function, args = gateway.submit.await_args.args
    return function, args


class TestInitialize:
    """Test reading the batch limit."""

    @pytest.mark.asyncio
    async def test_reads_max_batch_size_once(self, workflow, batcher_gateway):
        batcher_gateway.call = AsyncMock(return_value=25)

        assert await workflow.initialize() == 25
        assert await workflow.initialize() == 25
        assert workflow.max_batch_size == 25
        batcher_gateway.call.assert_awaited_once_with("MAX_BATCH_SIZE")

    @pytest.mark.asyncio
    async def test_falls_back_to_default(self, workflow, batcher_gateway):
        batcher_gateway.call = AsyncMock(
            side_effect=ContractCallFailure("unreadable", function="MAX_BATCH_SIZE", reason="revert")
        )

        assert await workflow.initialize() == 10
        assert workflow.max_batch_size == 10

    def test_default_before_initialize(self, workflow):
        assert workflow.max_batch_size == 10

    @pytest.mark.asyncio
    async def test_operation_reads_limit_without_initialize(
        self, workflow, batcher_gateway, coprocessor
    ):
        batcher_gateway.call = AsyncMock(return_value=50)
        recipients = [f"0x{i:040x}" for i in range(1, 12)]

        result = await workflow.batch_send_same_amount(TOKEN_ADDRESS, recipients, 1)

        assert result.transaction_hash == TX_HASH
        assert workflow.max_batch_size == 50
        batcher_gateway.call.assert_awaited_once_with("MAX_BATCH_SIZE")
        _, args = submitted_args(batcher_gateway)
        assert len(args[1]) == 11


class TestSameAmount:
    """Test ``batch_send_same_amount``."""

    @pytest.mark.asyncio
    async def test_success(self, workflow, batcher_gateway, coprocessor, account, statuses):
        result = await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1000)

        function, args = submitted_args(batcher_gateway)
        assert function == "batchSendTokenSameAmount"
        assert args[0] == TOKEN_ADDRESS
        assert args[1] == RECIPIENTS
        assert coprocessor.value_of(args[2]) == 1000
        assert coprocessor.verify_proof([args[2]], args[3], BATCHER_ADDRESS, account.address)

        assert result.transaction_hash == TX_HASH
        assert result.block_number == 100
        assert result.confirmations == 2
        assert result.explorer_url == f"https://etherscan.io/tx/{TX_HASH}"
        assert result.detail == {"token": TOKEN_ADDRESS, "recipients": 3}
        assert not workflow.busy
        assert statuses[-1].startswith("Confirmed! Sent 1000 tokens to 3 recipients")
        assert "Sending transaction..." in statuses

    @pytest.mark.asyncio
    async def test_waits_for_requested_confirmations(self, workflow, batcher_gateway):
        await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1, confirmations=5)

        batcher_gateway.wait_for_confirmations.assert_awaited_once_with(TX_HASH, 5)

    @pytest.mark.asyncio
    async def test_zero_confirmations_passed_through(self, workflow, batcher_gateway):
        await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1, confirmations=0)

        batcher_gateway.wait_for_confirmations.assert_awaited_once_with(TX_HASH, 0)

    @pytest.mark.asyncio
    async def test_operator_check_uses_token_contract(
        self, workflow, batcher_gateway, token_gateway, account
    ):
        await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)

        batcher_gateway.at.assert_called_once_with(TOKEN_ADDRESS, ERC7984_ABI)
        token_gateway.call.assert_awaited_once_with(
            "isOperator", account.address, BATCHER_ADDRESS
        )

    @pytest.mark.asyncio
    async def test_operator_missing_stops_before_encryption(
        self, workflow, batcher_gateway, token_gateway, coprocessor, statuses
    ):
        token_gateway.call = AsyncMock(return_value=False)

        with pytest.raises(AuthorizationRequired) as exc_info:
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)

        assert exc_info.value.spender == BATCHER_ADDRESS
        assert coprocessor.encrypt_calls == 0
        batcher_gateway.submit.assert_not_awaited()
        assert not workflow.busy
        assert statuses[-1].startswith("Batch transfer failed:")

    @pytest.mark.asyncio
    async def test_operator_check_can_be_disabled(self, batcher_gateway, encryption, token_gateway):
        workflow = BatchTransferWorkflow(
            batcher_gateway, encryption, require_operator_approval=False
        )

        await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)
        token_gateway.call.assert_not_awaited()


class TestValidation:
    """Test shape checks happen before any external call."""

    @pytest.mark.asyncio
    async def test_oversized_batch_rejected(
        self, workflow, batcher_gateway, token_gateway, coprocessor
    ):
        batcher_gateway.call = AsyncMock(return_value=2)
        await workflow.initialize()

        with pytest.raises(BatchValidationError, match="Maximum batch size is 2"):
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)

        assert coprocessor.encrypt_calls == 0
        token_gateway.call.assert_not_awaited()
        batcher_gateway.submit.assert_not_awaited()
        assert not workflow.busy

    @pytest.mark.asyncio
    async def test_empty_recipients(self, workflow):
        with pytest.raises(BatchValidationError, match="At least one recipient"):
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, [], 1)

    @pytest.mark.asyncio
    async def test_length_mismatch(self, workflow, coprocessor):
        with pytest.raises(BatchValidationError, match="same length"):
            await workflow.batch_send_different_amounts(TOKEN_ADDRESS, RECIPIENTS, [1, 2])
        assert coprocessor.encrypt_calls == 0

    @pytest.mark.asyncio
    async def test_invalid_recipient(self, workflow):
        with pytest.raises(BatchValidationError, match="Invalid address"):
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, ["0x1234"], 1)

    @pytest.mark.asyncio
    async def test_amount_out_of_range(self, workflow, token_gateway):
        with pytest.raises(BatchValidationError, match="uint64"):
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 2 ** 64)
        token_gateway.call.assert_not_awaited()


class TestDifferentAmounts:
    """Test ``batch_send_different_amounts``."""

    @pytest.mark.asyncio
    async def test_one_session_array_argument(self, workflow, batcher_gateway, coprocessor, account):
        amounts = [1_000_000, 2_000_000, 3_000_000]

        await workflow.batch_send_different_amounts(TOKEN_ADDRESS, RECIPIENTS, amounts)

        function, args = submitted_args(batcher_gateway)
        assert function == "batchSendTokenDifferentAmounts"
        assert len(args) == 4
        assert [coprocessor.value_of(h) for h in args[2]] == amounts
        assert coprocessor.encrypt_calls == 1
        assert coprocessor.verify_proof(args[2], args[3], BATCHER_ADDRESS, account.address)


class TestTokenRescue:
    """Test ``token_rescue``."""

    @pytest.mark.asyncio
    async def test_rescue(self, workflow, batcher_gateway, token_gateway, coprocessor):
        result = await workflow.token_rescue(TOKEN_ADDRESS, RECIPIENTS[0], 42)

        function, args = submitted_args(batcher_gateway)
        assert function == "tokenRescue"
        assert args[:2] == [TOKEN_ADDRESS, RECIPIENTS[0]]
        assert coprocessor.value_of(args[2]) == 42
        assert result.detail["recipient"] == RECIPIENTS[0]
        token_gateway.call.assert_not_awaited()


class TestGuard:
    """Test the busy flag and readiness guard."""

    @pytest.mark.asyncio
    async def test_busy_rejected(self, workflow, batcher_gateway):
        workflow.state.busy = True

        with pytest.raises(WorkflowBusy):
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)

        assert workflow.busy
        batcher_gateway.submit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_provider(self, batcher_gateway, statuses):
        workflow = BatchTransferWorkflow(
            batcher_gateway, EncryptionSessionBuilder(None), on_status=statuses.append
        )

        assert not workflow.can_interact
        with pytest.raises(EncryptionUnavailable) as exc_info:
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)

        assert exc_info.value.missing == "encryption provider"
        assert statuses == []

    @pytest.mark.asyncio
    async def test_missing_signer(self, batcher_gateway, encryption):
        batcher_gateway.account = None
        workflow = BatchTransferWorkflow(batcher_gateway, encryption)

        assert workflow.readiness().missing == "signer"

    @pytest.mark.asyncio
    async def test_failure_clears_busy_and_allows_retry(self, workflow, batcher_gateway):
        batcher_gateway.submit = AsyncMock(
            side_effect=[SubmissionFailure("rejected", reason="nonce too low"), TX_HASH]
        )

        with pytest.raises(SubmissionFailure):
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)
        assert not workflow.busy

        result = await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)
        assert result.transaction_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_foreign_exception_wrapped(self, workflow, batcher_gateway):
        batcher_gateway.wait_for_confirmations = AsyncMock(side_effect=RuntimeError("socket closed"))

        with pytest.raises(SubmissionFailure, match="socket closed") as exc_info:
            await workflow.batch_send_same_amount(TOKEN_ADDRESS, RECIPIENTS, 1)

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert not workflow.busy
