"""fhevm-client error handling.

Structured exception hierarchy shared by the schema analyzer, the
encryption and decryption layers and the operation workflows.
"""

from .exceptions import (
    AssemblyMismatch,
    AuthorizationRequired,
    BatchValidationError,
    ConfigurationError,
    ConfirmationTimeout,
    ContractCallFailure,
    DecryptionFailure,
    EncryptionUnavailable,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    FhevmClientError,
    InvalidSchema,
    NoPendingOperation,
    SchemaNotFound,
    SubmissionFailure,
    WorkflowBusy,
    create_timeout_error,
    create_validation_error,
)

__all__ = [
    "FhevmClientError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "ConfigurationError",
    "SchemaNotFound",
    "InvalidSchema",
    "EncryptionUnavailable",
    "AssemblyMismatch",
    "BatchValidationError",
    "AuthorizationRequired",
    "SubmissionFailure",
    "ConfirmationTimeout",
    "ContractCallFailure",
    "DecryptionFailure",
    "NoPendingOperation",
    "WorkflowBusy",
    "create_validation_error",
    "create_timeout_error",
]
