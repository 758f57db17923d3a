"""
Contract gateway over web3.py.

This module provides the on-chain side of the workflows:
- Read-only contract calls
- Signed transaction submission
- Waiting for a required number of confirmations (with a timeout)
- Event extraction from receipts
- Best-effort revert reason extraction
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import TimeExhausted
from web3.logs import DISCARD

from ..config import ClientConfig
from ..errors import (
    ContractCallFailure,
    SubmissionFailure,
    create_timeout_error,
)
from ..handles import to_hex

logger = logging.getLogger(__name__)


def extract_revert_reason(error: BaseException) -> str:
    """Best-available human readable reason for a failed call."""
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)

    nested = getattr(error, "error", None)
    if isinstance(nested, dict) and nested.get("message"):
        return str(nested["message"])
    if nested is not None and getattr(nested, "message", None):
        return str(nested.message)

    if error.args and isinstance(error.args[0], dict):
        message = error.args[0].get("message")
        if message:
            return str(message)

    message = getattr(error, "message", None)
    if message:
        return str(message)

    return str(error) or error.__class__.__name__


@dataclass
class ConfirmedTransaction:
    """A transaction that reached the required confirmation depth."""

    transaction_hash: str
    block_number: int
    confirmations: int
    receipt: Any = None
    gas_used: Optional[int] = None
    logs: List[Any] = field(default_factory=list)


class ContractGateway:
    """Async contract client bound to one address and ABI."""

    def __init__(
        self,
        w3: AsyncWeb3,
        address: str,
        abi: Sequence[Dict[str, Any]],
        account: Optional[LocalAccount] = None,
        config: Optional[ClientConfig] = None,
    ):
        """Initialize the gateway."""
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.abi = list(abi)
        self.account = account
        self.config = config or ClientConfig()
        self.contract = w3.eth.contract(address=self.address, abi=self.abi)

    @classmethod
    def connect(
        cls,
        config: ClientConfig,
        address: str,
        abi: Sequence[Dict[str, Any]],
        account: Optional[LocalAccount] = None,
    ) -> "ContractGateway":
        """Create a gateway with its own HTTP provider."""
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(config.rpc_url))
        return cls(w3, address, abi, account=account, config=config)

    def at(self, address: str, abi: Sequence[Dict[str, Any]]) -> "ContractGateway":
        """Gateway for another contract sharing this connection and account."""
        return ContractGateway(
            self.w3, address, abi, account=self.account, config=self.config
        )

    @property
    def sender(self) -> Optional[str]:
        return self.account.address if self.account is not None else None

    def _function(self, function: str, args: Sequence[Any]):
        if "(" in function:
            return self.contract.get_function_by_signature(function)(*args)
        return getattr(self.contract.functions, function)(*args)

    # ── Reads ────────────────────────────────────────────────────────

    async def call(self, function: str, *args: Any) -> Any:
        """Call a view function."""
        try:
            return await self._function(function, args).call()
        except Exception as e:
            reason = extract_revert_reason(e)
            logger.warning("Call %s on %s failed: %s", function, self.address, reason)
            raise ContractCallFailure(
                f"Call {function} failed: {reason}",
                function=function,
                reason=reason,
                cause=e,
            ) from e

    async def get_code(self, address: Optional[str] = None) -> bytes:
        """Deployed bytecode at ``address`` (this contract when omitted)."""
        target = Web3.to_checksum_address(address) if address else self.address
        try:
            return bytes(await self.w3.eth.get_code(target))
        except Exception as e:
            raise ContractCallFailure(
                f"Could not read code at {target}: {extract_revert_reason(e)}",
                function="eth_getCode",
                cause=e,
            ) from e

    async def _latest_block(self) -> int:
        return await self.w3.eth.block_number

    # ── Writes ───────────────────────────────────────────────────────

    async def submit(self, function: str, args: Sequence[Any] = (), value: int = 0) -> str:
        """Sign and broadcast a call to ``function``; returns the transaction hash."""
        if self.account is None:
            raise SubmissionFailure(
                "Contract info or signer not available", reason="no signer"
            )

        try:
            tx_params = {
                "from": self.account.address,
                "nonce": await self.w3.eth.get_transaction_count(
                    self.account.address, "pending"
                ),
                "value": value,
            }
            if self.config.gas_limit is not None:
                tx_params["gas"] = self.config.gas_limit
            transaction = await self._function(function, args).build_transaction(tx_params)
            signed = self.account.sign_transaction(transaction)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            reason = extract_revert_reason(e)
            logger.warning("Submitting %s failed: %s", function, reason)
            raise SubmissionFailure(
                f"{function} rejected: {reason}", reason=reason, cause=e
            ) from e

        tx_hash_hex = to_hex(bytes(tx_hash)) if not isinstance(tx_hash, str) else tx_hash
        logger.info("Submitted %s: %s", function, tx_hash_hex)
        return tx_hash_hex

    async def wait_for_confirmations(
        self,
        tx_hash: str,
        confirmations: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ConfirmedTransaction:
        """Wait until ``tx_hash`` is mined and buried under enough blocks.

        Raises:
            ConfirmationTimeout: not confirmed within ``timeout`` seconds.
            SubmissionFailure: the transaction was mined but reverted.
        """
        if confirmations is None:
            confirmations = self.config.confirmations
        if timeout is None:
            timeout = self.config.confirmation_timeout
        poll_interval = self.config.confirmation_poll_interval
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout, poll_latency=poll_interval
            )
        except TimeExhausted as e:
            raise create_timeout_error(tx_hash, timeout) from e

        if receipt["status"] != 1:
            raise SubmissionFailure(
                f"Transaction {tx_hash} reverted",
                reason="execution reverted",
                transaction_hash=tx_hash,
            )

        block_number = receipt["blockNumber"]
        while True:
            depth = await self._latest_block() - block_number + 1
            if depth >= confirmations:
                break
            if loop.time() >= deadline:
                raise create_timeout_error(tx_hash, timeout)
            await asyncio.sleep(poll_interval)

        return ConfirmedTransaction(
            transaction_hash=tx_hash,
            block_number=block_number,
            confirmations=depth,
            receipt=receipt,
            gas_used=receipt.get("gasUsed"),
            logs=list(receipt.get("logs", [])),
        )

    # ── Events ───────────────────────────────────────────────────────

    def decode_events(self, receipt: Any, event_name: str) -> List[Dict[str, Any]]:
        """Decoded arguments of every ``event_name`` log in ``receipt``."""
        event = getattr(self.contract.events, event_name)()
        return [dict(log["args"]) for log in event.process_receipt(receipt, errors=DISCARD)]


__all__ = [
    "ContractGateway",
    "ConfirmedTransaction",
    "extract_revert_reason",
]
