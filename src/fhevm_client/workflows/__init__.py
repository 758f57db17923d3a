"""Guarded operation workflows for the confidential contracts."""

from .base import OperationWorkflow, StatusCallback, WorkflowState
from .batch_transfer import BatchTransferWorkflow
from .token_balance import BalanceSnapshot, TokenBalanceWorkflow, format_balance
from .wrapped_ether import WrappedEtherWorkflow, format_ether

__all__ = [
    "OperationWorkflow",
    "StatusCallback",
    "WorkflowState",
    "BatchTransferWorkflow",
    "TokenBalanceWorkflow",
    "BalanceSnapshot",
    "format_balance",
    "WrappedEtherWorkflow",
    "format_ether",
]
