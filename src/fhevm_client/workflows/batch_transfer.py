"""Batched confidential ERC-7984 transfers through the eBatcher contract.

Every operation follows the same sequence: shape validation, operator
approval pre-check, classify -> encrypt -> assemble, submit, then wait for
confirmations. Shape checks use the batch limit cached by ``initialize``
so an oversized batch is rejected before any encryption or network call.
"""

import logging
from typing import Any, List, Optional, Sequence

from web3 import Web3

from ..abi import ERC7984_ABI, SchemaAnalyzer
from ..assembler import assemble
from ..chain import ContractGateway
from ..config import ClientConfig
from ..encryption import EncryptionSessionBuilder
from ..errors import AuthorizationRequired, BatchValidationError, ContractCallFailure
from ..types import OperationResult, ParameterRole
from .base import OperationWorkflow, StatusCallback

logger = logging.getLogger(__name__)


class BatchTransferWorkflow(OperationWorkflow):
    """Send one encrypted amount, or one per recipient, in a single call."""

    family = "batch-transfer"

    def __init__(
        self,
        gateway: Optional[ContractGateway],
        encryption: Optional[EncryptionSessionBuilder] = None,
        config: Optional[ClientConfig] = None,
        on_status: Optional[StatusCallback] = None,
        require_operator_approval: bool = True,
    ):
        super().__init__(gateway, encryption, config, on_status)
        self.require_operator_approval = require_operator_approval
        self.schema = SchemaAnalyzer(gateway.abi if gateway is not None else [])
        self._max_batch_size: Optional[int] = None

    # ── Batch limit ──────────────────────────────────────────────────

    async def initialize(self) -> int:
        """Read ``MAX_BATCH_SIZE`` once; falls back to the configured default."""
        if self._max_batch_size is not None:
            return self._max_batch_size
        try:
            self._max_batch_size = int(await self.gateway.call("MAX_BATCH_SIZE"))
        except ContractCallFailure as e:
            logger.warning(
                "MAX_BATCH_SIZE unreadable (%s); using default %d",
                e.reason,
                self.config.default_max_batch_size,
            )
            self._max_batch_size = self.config.default_max_batch_size
        return self._max_batch_size

    @property
    def max_batch_size(self) -> int:
        if self._max_batch_size is None:
            return self.config.default_max_batch_size
        return self._max_batch_size

    # ── Validation ───────────────────────────────────────────────────

    def _validate(
        self, recipients: Sequence[str], amounts: Optional[Sequence[int]] = None
    ) -> List[str]:
        if not recipients:
            raise BatchValidationError(
                "At least one recipient is required", field="recipients", value=[]
            )
        if amounts is not None:
            if not amounts:
                raise BatchValidationError(
                    "At least one recipient and amount is required", field="amounts"
                )
            if len(amounts) != len(recipients):
                raise BatchValidationError(
                    "Recipients and amounts arrays must have the same length",
                    field="amounts",
                    value=len(amounts),
                    expected=len(recipients),
                )
        if len(recipients) > self.max_batch_size:
            raise BatchValidationError(
                f"Maximum batch size is {self.max_batch_size}",
                field="recipients",
                value=len(recipients),
                expected=f"<= {self.max_batch_size}",
            )
        return [self._checksum(r, "recipients") for r in recipients]

    @staticmethod
    def _checksum(address: str, field: str) -> str:
        if not isinstance(address, str) or not Web3.is_address(address):
            raise BatchValidationError(
                f"Invalid address: {address!r}", field=field, value=address, expected="address"
            )
        return Web3.to_checksum_address(address)

    def _check_amounts(self, function: str, amounts: Sequence[int]) -> None:
        kind = self.schema.encrypted_kinds(function)[0]
        EncryptionSessionBuilder.prepare([(a, kind) for a in amounts])

    async def _check_operator(self, token: str) -> None:
        """The eBatcher must be an operator for the sender on ``token``."""
        if not self.require_operator_approval:
            return
        holder = self.gateway.sender
        spender = self.gateway.address
        self._set_status("Checking operator approval...")
        approved = await self.gateway.at(token, ERC7984_ABI).call("isOperator", holder, spender)
        if not approved:
            raise AuthorizationRequired(
                f"{spender} is not an operator for {holder} on token {token}. "
                "Call setOperator on the token first.",
                holder=holder,
                spender=spender,
            )

    # ── Operations ───────────────────────────────────────────────────

    async def _encrypt_and_submit(
        self,
        function: str,
        amounts: Sequence[int],
        extra_plain: Sequence[Any],
        confirmations: Optional[int],
    ):
        descriptors = self.schema.classify(function)
        kind = self.schema.encrypted_kinds(function)[0]

        self._set_status(f"Encrypting {len(amounts)} amount(s) with {kind.value}...")
        batch = await self.encryption.encrypt_batch(
            self.gateway.address, self.gateway.sender, [(a, kind) for a in amounts]
        )
        array_lengths = {
            d.name: len(amounts)
            for d in descriptors
            if d.role is ParameterRole.ENCRYPTED and d.is_array
        }
        args = assemble(descriptors, batch, extra_plain, array_lengths=array_lengths)
        return await self._submit(function, args, confirmations=confirmations)

    async def batch_send_same_amount(
        self,
        token: str,
        recipients: Sequence[str],
        amount: int,
        confirmations: Optional[int] = None,
    ) -> OperationResult:
        """Send the same encrypted ``amount`` to every recipient."""
        async with self._operation("Batch transfer"):
            await self.initialize()
            recipients = self._validate(recipients)
            token = self._checksum(token, "token")
            self._check_amounts("batchSendTokenSameAmount", [amount])
            self._set_status(f"Starting batch transfer to {len(recipients)} recipients...")
            await self._check_operator(token)
            confirmed = await self._encrypt_and_submit(
                "batchSendTokenSameAmount", [amount], [token, recipients], confirmations
            )
            self._set_status(
                f"Confirmed! Sent {amount} tokens to {len(recipients)} recipients. "
                f"Block: {confirmed.block_number}"
            )
            return self._result(
                confirmed, {"token": token, "recipients": len(recipients)}
            )

    async def batch_send_different_amounts(
        self,
        token: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
        confirmations: Optional[int] = None,
    ) -> OperationResult:
        """Send ``amounts[i]`` to ``recipients[i]``, all encrypted in one session."""
        async with self._operation("Batch transfer"):
            await self.initialize()
            recipients = self._validate(recipients, amounts)
            token = self._checksum(token, "token")
            self._check_amounts("batchSendTokenDifferentAmounts", amounts)
            self._set_status(
                f"Starting batch transfer to {len(recipients)} recipients with different amounts..."
            )
            await self._check_operator(token)
            confirmed = await self._encrypt_and_submit(
                "batchSendTokenDifferentAmounts", list(amounts), [token, recipients], confirmations
            )
            self._set_status(
                f"Confirmed! Sent different amounts to {len(recipients)} recipients. "
                f"Block: {confirmed.block_number}"
            )
            return self._result(
                confirmed, {"token": token, "recipients": len(recipients)}
            )

    async def token_rescue(
        self,
        token: str,
        recipient: str,
        amount: int,
        confirmations: Optional[int] = None,
    ) -> OperationResult:
        """Move tokens stuck in the eBatcher contract to ``recipient``."""
        async with self._operation("Token rescue"):
            token = self._checksum(token, "token")
            recipient = self._checksum(recipient, "recipient")
            self._check_amounts("tokenRescue", [amount])
            self._set_status("Starting token rescue...")
            confirmed = await self._encrypt_and_submit(
                "tokenRescue", [amount], [token, recipient], confirmations
            )
            self._set_status(
                f"Confirmed! Rescued {amount} tokens to {recipient}. "
                f"Block: {confirmed.block_number}"
            )
            return self._result(confirmed, {"token": token, "recipient": recipient})
