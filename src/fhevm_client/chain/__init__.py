"""On-chain access for fhevm-client."""

from .gateway import ConfirmedTransaction, ContractGateway, extract_revert_reason

__all__ = [
    "ContractGateway",
    "ConfirmedTransaction",
    "extract_revert_reason",
]
