"""fhevm-client: encrypted-input marshalling and decryption for FHEVM contracts.

Typical use::

    from fhevm_client import (
        BatchTransferWorkflow, ClientConfig, ContractGateway, EBATCHER_ABI,
        EncryptionSessionBuilder,
    )

    config = ClientConfig(rpc_url=..., chain_id=11155111)
    gateway = ContractGateway.connect(config, batcher_address, EBATCHER_ABI, account)
    workflow = BatchTransferWorkflow(gateway, EncryptionSessionBuilder(provider))
    await workflow.initialize()
    result = await workflow.batch_send_same_amount(token, recipients, 1_000_000)
"""

from .abi import EBATCHER_ABI, ERC7984_ABI, EWETH_ABI, SchemaAnalyzer, classify
from .assembler import assemble
from .chain import ConfirmedTransaction, ContractGateway
from .config import ClientConfig
from .decryption import (
    DecryptionCoordinator,
    DecryptionProvider,
    DecryptionState,
    SignatureCache,
)
from .encryption import EncryptionProvider, EncryptionSessionBuilder
from .errors import (
    AssemblyMismatch,
    AuthorizationRequired,
    BatchValidationError,
    ConfigurationError,
    ConfirmationTimeout,
    ContractCallFailure,
    DecryptionFailure,
    EncryptionUnavailable,
    FhevmClientError,
    InvalidSchema,
    NoPendingOperation,
    SchemaNotFound,
    SubmissionFailure,
    WorkflowBusy,
)
from .handles import ZERO_HANDLE, is_zero_handle, normalize_handle
from .types import (
    CiphertextBatch,
    DecryptionRequest,
    EncryptedKind,
    OperationResult,
    ParameterDescriptor,
    ParameterRole,
    PlaintextEntry,
    Readiness,
)
from .workflows import (
    BatchTransferWorkflow,
    TokenBalanceWorkflow,
    WrappedEtherWorkflow,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Configuration
    "ClientConfig",
    # Types
    "EncryptedKind",
    "ParameterRole",
    "ParameterDescriptor",
    "PlaintextEntry",
    "CiphertextBatch",
    "DecryptionRequest",
    "Readiness",
    "OperationResult",
    "ZERO_HANDLE",
    "is_zero_handle",
    "normalize_handle",
    # Components
    "SchemaAnalyzer",
    "classify",
    "assemble",
    "EncryptionProvider",
    "EncryptionSessionBuilder",
    "DecryptionProvider",
    "DecryptionCoordinator",
    "DecryptionState",
    "SignatureCache",
    "ContractGateway",
    "ConfirmedTransaction",
    # Workflows
    "BatchTransferWorkflow",
    "TokenBalanceWorkflow",
    "WrappedEtherWorkflow",
    # ABIs
    "EBATCHER_ABI",
    "ERC7984_ABI",
    "EWETH_ABI",
    # Errors
    "FhevmClientError",
    "ConfigurationError",
    "SchemaNotFound",
    "InvalidSchema",
    "EncryptionUnavailable",
    "AssemblyMismatch",
    "BatchValidationError",
    "AuthorizationRequired",
    "SubmissionFailure",
    "ContractCallFailure",
    "ConfirmationTimeout",
    "DecryptionFailure",
    "NoPendingOperation",
    "WorkflowBusy",
]
