"""Encrypted wrapped ether (eWETH).

Deposits are plain payable calls. Withdrawal is two-phase: ``withdraw``
burns an encrypted amount and emits a ``WithdrawalRequested`` handle;
``complete_withdrawal`` publicly decrypts that handle and hands the
cleartext plus its decryption proof back to the contract, which releases
the ether.
"""

import logging
from typing import Optional

from ..abi import SchemaAnalyzer
from ..assembler import assemble
from ..chain import ContractGateway
from ..config import ClientConfig
from ..decryption import DecryptionCoordinator
from ..encryption import EncryptionSessionBuilder
from ..errors import (
    BatchValidationError,
    DecryptionFailure,
    NoPendingOperation,
    SubmissionFailure,
)
from ..handles import is_zero_handle, normalize_handle, short_handle
from ..types import EncryptedKind, OperationResult, Readiness
from .base import OperationWorkflow, StatusCallback

logger = logging.getLogger(__name__)

UINT64_MAX = EncryptedKind.UINT64.max_value
WEI_PER_ETHER = 10 ** 18


def format_ether(amount_wei: int) -> str:
    """Wei to an ether string, trailing zeros trimmed."""
    integer_part, fractional_part = divmod(amount_wei, WEI_PER_ETHER)
    fractional = str(fractional_part).rjust(18, "0").rstrip("0")
    return f"{integer_part}.{fractional or '0'}"


class WrappedEtherWorkflow(OperationWorkflow):
    """Deposit, two-phase withdrawal and public balance reads for eWETH."""

    family = "eweth"

    def __init__(
        self,
        gateway: Optional[ContractGateway],
        encryption: Optional[EncryptionSessionBuilder] = None,
        coordinator: Optional[DecryptionCoordinator] = None,
        config: Optional[ClientConfig] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        super().__init__(gateway, encryption, config, on_status)
        self.coordinator = coordinator
        self.schema = SchemaAnalyzer(gateway.abi if gateway is not None else [])
        self.pending_withdrawal: Optional[str] = None
        self.balance_handle: Optional[str] = None
        self.balance: Optional[int] = None

    def _decryption_readiness(self) -> Readiness:
        return Readiness.check(
            {
                "decryption provider": self.coordinator is not None
                and self.coordinator.provider is not None,
                "signer": self.gateway is not None and self.gateway.account is not None,
                "contract": self.gateway is not None and self.gateway.address,
            }
        )

    @staticmethod
    def _check_amount(amount_wei: int) -> None:
        if isinstance(amount_wei, bool) or not isinstance(amount_wei, int) or amount_wei <= 0:
            raise BatchValidationError(
                "Amount must be a positive integer (wei)",
                field="amount_wei",
                value=amount_wei,
                expected="int > 0",
            )
        if amount_wei > UINT64_MAX:
            raise BatchValidationError(
                f"Amount exceeds uint64 max ({format_ether(UINT64_MAX)} ETH)",
                field="amount_wei",
                value=amount_wei,
                expected=f"<= {UINT64_MAX}",
            )

    # ── Deposit ──────────────────────────────────────────────────────

    async def deposit(self, amount_wei: int, confirmations: Optional[int] = None) -> OperationResult:
        """Wrap ``amount_wei`` of ether into encrypted eWETH."""
        readiness = Readiness.check(
            {
                "signer": self.gateway is not None and self.gateway.account is not None,
                "contract": self.gateway is not None and self.gateway.address,
            }
        )
        async with self._operation("Deposit", readiness):
            self._check_amount(amount_wei)
            self._set_status(f"Depositing {format_ether(amount_wei)} ETH...")
            confirmed = await self._submit(
                "deposit", [], value=amount_wei, confirmations=confirmations
            )
            self._set_status(
                f"Deposited {format_ether(amount_wei)} ETH! Block: {confirmed.block_number}"
            )
            return self._result(confirmed, {"amount_wei": amount_wei})

    # ── Withdrawal ───────────────────────────────────────────────────

    async def initiate_withdrawal(
        self, amount_wei: int, confirmations: Optional[int] = None
    ) -> OperationResult:
        """Phase 1: burn an encrypted amount and remember the request handle."""
        async with self._operation("Withdrawal"):
            self._check_amount(amount_wei)
            self._set_status("Initiating withdrawal...")

            descriptors = self.schema.classify("withdraw")
            kind = self.schema.encrypted_kinds("withdraw")[0]
            self._set_status("Encrypting withdrawal amount...")
            batch = await self.encryption.encrypt_batch(
                self.gateway.address, self.gateway.sender, [(amount_wei, kind)]
            )
            args = assemble(descriptors, batch)

            self._set_status("Sending withdrawal request...")
            confirmed = await self._submit("withdraw", args, confirmations=confirmations)

            events = self.gateway.decode_events(confirmed.receipt, "WithdrawalRequested")
            if not events:
                raise SubmissionFailure(
                    "WithdrawalRequested event not found",
                    reason="missing event",
                    transaction_hash=confirmed.transaction_hash,
                )
            self.pending_withdrawal = normalize_handle(events[0]["handle"])
            self._set_status(
                f"Withdrawal initiated! Block: {confirmed.block_number} "
                f"Handle: {short_handle(self.pending_withdrawal)}. "
                "Now decrypt and complete the withdrawal."
            )
            return self._result(confirmed, {"handle": self.pending_withdrawal})

    async def complete_withdrawal(self, confirmations: Optional[int] = None) -> OperationResult:
        """Phase 2: publicly decrypt the pending handle and finalize."""
        if self.pending_withdrawal is None:
            self._set_status("No pending withdrawal")
            raise NoPendingOperation("No pending withdrawal")

        async with self._operation("Complete withdrawal", self._decryption_readiness()):
            handle = self.pending_withdrawal
            self._set_status("Performing public decryption...")
            decrypted = await self.coordinator.public_decrypt([handle])
            amount = decrypted.clear_values.get(handle)
            if amount is None:
                raise DecryptionFailure(
                    f"No cleartext value found for handle {handle}", handles=[handle]
                )
            self._set_status(
                f"Amount decrypted: {format_ether(amount)} ETH. "
                "Completing withdrawal with proof verification..."
            )

            confirmed = await self._submit(
                "completeWithdrawal",
                [handle, decrypted.abi_encoded_clear_values, decrypted.decryption_proof],
                confirmations=confirmations,
            )
            self.pending_withdrawal = None
            self.balance_handle = None
            self.balance = None
            self._set_status(
                f"Withdrawal complete! ETH transferred to your wallet. Block: {confirmed.block_number}"
            )
            return self._result(confirmed, {"handle": handle, "amount_wei": amount})

    # ── Balance ──────────────────────────────────────────────────────

    async def get_balance(self, confirmations: Optional[int] = None) -> str:
        """Mark the sender's balance publicly decryptable and fetch its handle."""
        readiness = Readiness.check(
            {
                "signer": self.gateway is not None and self.gateway.account is not None,
                "contract": self.gateway is not None and self.gateway.address,
            }
        )
        async with self._operation("Balance read", readiness):
            self._set_status("Getting encrypted balance...")
            confirmed = await self._submit(
                "makeBalancePubliclyDecryptable", [], confirmations=confirmations
            )
            self._set_status(
                f"Balance marked as decryptable. Block: {confirmed.block_number}. "
                "Fetching encrypted handle..."
            )
            raw = await self.gateway.call("confidentialBalanceOf", self.gateway.sender)
            self.balance_handle = normalize_handle(raw)
            self.balance = None
            self._set_status(f"Balance handle obtained: {short_handle(self.balance_handle)}")
            return self.balance_handle

    async def decrypt_balance(self) -> int:
        """Publicly decrypt the handle from ``get_balance``; absent values read as 0."""
        if self.balance_handle is None:
            raise NoPendingOperation("No balance handle available")
        if is_zero_handle(self.balance_handle):
            self.balance = 0
            self._set_status("Balance is zero (0). No decryption needed.")
            return 0

        async with self._operation("Balance decryption", self._decryption_readiness()):
            self._set_status("Performing public decryption...")
            decrypted = await self.coordinator.public_decrypt([self.balance_handle])
            self.balance = decrypted.clear_values.get(self.balance_handle, 0)
            self._set_status(f"Balance: {format_ether(self.balance)} ETH")
            return self.balance
