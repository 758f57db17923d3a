"""ERC-7984 confidential balance reads.

``get_token_balance`` only fetches the balance handle and token metadata.
Decryption is a separate call so the caller decides when the user is
asked to sign for it; a zero handle is reported as 0 without involving
the decryption coordinator.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from web3 import Web3

from ..abi import ERC7984_ABI
from ..chain import ContractGateway
from ..config import ClientConfig
from ..decryption import DecryptionCoordinator
from ..errors import BatchValidationError, ContractCallFailure, NoPendingOperation
from ..handles import is_zero_handle, normalize_handle, short_handle
from ..types import DecryptionRequest, Readiness
from .base import OperationWorkflow, StatusCallback

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18
DEFAULT_SYMBOL = "TOKEN"


def format_balance(value: int, decimals: Optional[int]) -> str:
    """Render a raw integer balance with ``decimals`` places, trailing zeros trimmed."""
    if not decimals or decimals <= 0:
        return str(value)
    integer_part, fractional_part = divmod(value, 10 ** decimals)
    fractional = str(fractional_part).rjust(decimals, "0").rstrip("0")
    if fractional:
        return f"{integer_part}.{fractional}"
    return str(integer_part)


@dataclass
class BalanceSnapshot:
    """Encrypted balance of one account on one token, plus its cleartext once known."""

    token: str
    account: str
    handle: str
    decimals: int = DEFAULT_DECIMALS
    symbol: str = DEFAULT_SYMBOL
    value: Optional[int] = None

    @property
    def is_zero(self) -> bool:
        return is_zero_handle(self.handle)

    @property
    def formatted(self) -> Optional[str]:
        if self.value is None:
            return None
        return format_balance(self.value, self.decimals)


class TokenBalanceWorkflow(OperationWorkflow):
    """Reads and decrypts confidential token balances."""

    family = "token-balance"

    def __init__(
        self,
        gateway: Optional[ContractGateway],
        coordinator: Optional[DecryptionCoordinator] = None,
        config: Optional[ClientConfig] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        super().__init__(gateway, None, config, on_status)
        self.coordinator = coordinator
        self.snapshot: Optional[BalanceSnapshot] = None

    def readiness(self) -> Readiness:
        return Readiness.check({"provider": self.gateway is not None})

    async def _call_or(self, token: ContractGateway, function: str, default: Any, *args: Any) -> Any:
        try:
            return await token.call(function, *args)
        except ContractCallFailure as e:
            logger.debug("%s unavailable on %s (%s); using %r", function, token.address, e.reason, default)
            return default

    async def get_token_balance(self, token_address: str, account: Optional[str] = None) -> BalanceSnapshot:
        """Fetch the encrypted balance handle of ``account`` (the signer by default)."""
        async with self._operation("Balance read"):
            self.snapshot = None
            self._set_status("Fetching encrypted balance...")

            if not isinstance(token_address, str) or not Web3.is_address(token_address):
                raise BatchValidationError(
                    "Invalid token address format",
                    field="token",
                    value=token_address,
                    expected="address",
                )
            account = account or self.gateway.sender
            if not account or not Web3.is_address(account):
                raise BatchValidationError(
                    "Invalid account address", field="account", value=account, expected="address"
                )
            account = Web3.to_checksum_address(account)

            code = await self.gateway.get_code(token_address)
            if not code:
                raise ContractCallFailure(
                    "No contract found at this address. Make sure it's a valid "
                    "ERC-7984 token contract.",
                    function="eth_getCode",
                )

            token = self.gateway.at(token_address, ERC7984_ABI)
            raw_handle, decimals, symbol = await asyncio.gather(
                token.call("confidentialBalanceOf", account),
                self._call_or(token, "decimals", DEFAULT_DECIMALS),
                self._call_or(token, "symbol", DEFAULT_SYMBOL),
            )

            snapshot = BalanceSnapshot(
                token=token.address,
                account=account,
                handle=normalize_handle(raw_handle),
                decimals=int(decimals),
                symbol=symbol or DEFAULT_SYMBOL,
            )
            self.snapshot = snapshot

            if snapshot.is_zero:
                snapshot.value = 0
                self._set_status(
                    f"Balance: 0 {snapshot.symbol}. This balance is zero or uninitialized."
                )
                return snapshot

            if self.coordinator is not None:
                self.coordinator.set_requests(
                    [DecryptionRequest(snapshot.handle, snapshot.token)]
                )
            self._set_status(
                f"Got encrypted balance handle {short_handle(snapshot.handle)}. "
                "Decrypt it to reveal the amount."
            )
            return snapshot

    async def decrypt_balance(self) -> int:
        """Decrypt the handle from the last ``get_token_balance`` call."""
        snapshot = self.snapshot
        if snapshot is None:
            raise NoPendingOperation("No balance handle available")
        if snapshot.is_zero:
            snapshot.value = 0
            self._set_status("Balance is zero (0). No decryption needed.")
            return 0

        readiness = Readiness.check(
            {"provider": self.gateway is not None, "decryption coordinator": self.coordinator}
        )
        async with self._operation("Balance decryption", readiness):
            self._set_status("Starting decryption...")
            values = await self.coordinator.decrypt(
                [DecryptionRequest(snapshot.handle, snapshot.token)]
            )
            snapshot.value = values[snapshot.handle]
            self._set_status(
                f"Decrypted Balance: {snapshot.formatted} {snapshot.symbol}".rstrip()
            )
            return snapshot.value
