"""Shared machinery for operation workflows.

Each workflow instance serves one operation family and runs at most one
operation at a time. A second invocation while ``busy`` is set, or an
invocation with a missing prerequisite, is rejected before any state is
touched. Once an operation starts, ``busy`` is always cleared on exit so
the caller can retry after a failure.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, Optional

from ..chain import ConfirmedTransaction, ContractGateway, extract_revert_reason
from ..config import ClientConfig
from ..encryption import EncryptionSessionBuilder
from ..errors import EncryptionUnavailable, FhevmClientError, SubmissionFailure, WorkflowBusy
from ..types import OperationResult, Readiness

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


@dataclass
class WorkflowState:
    """Busy flag and last user-facing status of one workflow instance."""

    busy: bool = False
    last_status: str = ""


class OperationWorkflow:
    """Base class for guarded, sequential contract operations."""

    family = "operation"

    def __init__(
        self,
        gateway: Optional[ContractGateway],
        encryption: Optional[EncryptionSessionBuilder] = None,
        config: Optional[ClientConfig] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self.gateway = gateway
        self.encryption = encryption
        self.config = config or (gateway.config if gateway is not None else ClientConfig())
        self.on_status = on_status
        self.state = WorkflowState()

    @property
    def busy(self) -> bool:
        return self.state.busy

    @property
    def status(self) -> str:
        return self.state.last_status

    def readiness(self) -> Readiness:
        """First missing prerequisite among provider session, signer and contract."""
        return Readiness.check(
            {
                "encryption provider": self.encryption is not None
                and self.encryption.provider is not None,
                "signer": self.gateway is not None and self.gateway.account is not None,
                "contract": self.gateway is not None and self.gateway.address,
            }
        )

    @property
    def can_interact(self) -> bool:
        return not self.busy and self.readiness().ready

    def _set_status(self, message: str) -> None:
        self.state.last_status = message
        logger.info("[%s] %s", self.family, message)
        if self.on_status is not None:
            self.on_status(message)

    @asynccontextmanager
    async def _operation(self, name: str, readiness: Optional[Readiness] = None) -> AsyncIterator[None]:
        """Run one guarded operation.

        Rejections (busy, missing prerequisite) leave the state untouched.
        Failures inside the block are reported through the status and
        re-raised as library errors; foreign exceptions are wrapped.
        """
        if self.state.busy:
            raise WorkflowBusy(f"{name} rejected: operation already in progress")
        readiness = readiness if readiness is not None else self.readiness()
        if not readiness:
            raise EncryptionUnavailable(
                readiness.missing, f"Cannot interact with contract: missing {readiness.missing}"
            )

        self.state.busy = True
        try:
            yield
        except FhevmClientError as e:
            self._set_status(f"{name} failed: {e.message}")
            raise
        except Exception as e:
            reason = extract_revert_reason(e)
            logger.exception("Unexpected failure in %s", name)
            self._set_status(f"{name} failed: {reason}")
            raise SubmissionFailure(f"{name} failed: {reason}", reason=reason, cause=e) from e
        finally:
            self.state.busy = False

    async def _submit(self, function: str, args, value: int = 0, confirmations: Optional[int] = None) -> ConfirmedTransaction:
        """Submit through the gateway, reporting each phase."""
        self._set_status("Sending transaction...")
        tx_hash = await self.gateway.submit(function, args, value=value)
        self._set_status(
            f"Transaction submitted: {tx_hash}. Waiting for block confirmation..."
        )
        if confirmations is None:
            confirmations = self.config.confirmations
        return await self.gateway.wait_for_confirmations(tx_hash, confirmations)

    def _result(self, confirmed: ConfirmedTransaction, detail: Optional[Dict[str, Any]] = None) -> OperationResult:
        return OperationResult(
            transaction_hash=confirmed.transaction_hash,
            block_number=confirmed.block_number,
            confirmations=confirmed.confirmations,
            explorer_url=self.config.explorer_url(confirmed.transaction_hash),
            detail=detail or {},
        )
