"""Exception hierarchy for fhevm-client.

This module defines the structured error taxonomy used by the schema
analyzer, the encryption and decryption layers and the operation
workflows. Every error carries a category, a severity and a retryable
flag so callers can decide whether to surface, retry or abort.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    SCHEMA = "schema"
    PROVIDER = "provider"
    ASSEMBLY = "assembly"
    AUTHORIZATION = "authorization"
    TRANSACTION = "transaction"
    TIMEOUT = "timeout"
    DECRYPTION = "decryption"
    STATE = "state"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    component: Optional[str] = None
    operation: Optional[str] = None
    contract_address: Optional[str] = None
    account: Optional[str] = None
    chain_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "contract_address": self.contract_address,
            "account": self.account,
            "chain_id": self.chain_id,
            "metadata": self.metadata,
        }


class FhevmClientError(Exception):
    """Base exception for all fhevm-client errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        retryable: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.retryable = retryable
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc() if cause is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "retryable": self.retryable,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.category != ErrorCategory.SYSTEM:
            parts.append(f"Category: {self.category.value}")

        if self.retryable:
            parts.append("Retryable: Yes")

        return " | ".join(parts)


class ConfigurationError(FhevmClientError):
    """Invalid client configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data


class SchemaNotFound(FhevmClientError):
    """The named function is absent from the contract ABI."""

    def __init__(self, function_name: str, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or f"Function ABI not found for {function_name}",
            error_code="SCHEMA_NOT_FOUND",
            category=ErrorCategory.SCHEMA,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.function_name = function_name


class InvalidSchema(FhevmClientError):
    """The function ABI exists but cannot be used for encrypted calls."""

    def __init__(self, function_name: str, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or f"No inputs found for {function_name}",
            error_code="INVALID_SCHEMA",
            category=ErrorCategory.SCHEMA,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.function_name = function_name


class EncryptionUnavailable(FhevmClientError):
    """A prerequisite for encryption is missing (provider, signer or contract)."""

    def __init__(self, missing: str, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or f"Encryption unavailable: missing {missing}",
            error_code="ENCRYPTION_UNAVAILABLE",
            category=ErrorCategory.PROVIDER,
            **kwargs,
        )
        self.missing = missing

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["missing"] = self.missing
        return data


class AssemblyMismatch(FhevmClientError):
    """Declared parameters and supplied handles/values do not line up."""

    def __init__(self, message: str, parameter: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code="ASSEMBLY_MISMATCH",
            category=ErrorCategory.ASSEMBLY,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.parameter = parameter

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["parameter"] = self.parameter
        return data


class BatchValidationError(FhevmClientError):
    """Caller input failed a shape or range check."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class AuthorizationRequired(FhevmClientError):
    """The acting party has not granted a required on-chain authorization."""

    def __init__(
        self,
        message: str,
        holder: Optional[str] = None,
        spender: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            error_code="AUTHORIZATION_REQUIRED",
            category=ErrorCategory.AUTHORIZATION,
            **kwargs,
        )
        self.holder = holder
        self.spender = spender

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"holder": self.holder, "spender": self.spender})
        return data


class SubmissionFailure(FhevmClientError):
    """A submitted call was rejected or reverted."""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            error_code="SUBMISSION_FAILURE",
            category=ErrorCategory.TRANSACTION,
            **kwargs,
        )
        self.reason = reason
        self.transaction_hash = transaction_hash

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"reason": self.reason, "transaction_hash": self.transaction_hash})
        return data


class ContractCallFailure(FhevmClientError):
    """A read-only contract call failed."""

    def __init__(
        self, message: str, function: Optional[str] = None, reason: Optional[str] = None, **kwargs
    ):
        super().__init__(
            message,
            error_code="CONTRACT_CALL_FAILURE",
            category=ErrorCategory.TRANSACTION,
            retryable=True,
            **kwargs,
        )
        self.function = function
        self.reason = reason


class ConfirmationTimeout(FhevmClientError):
    """The required confirmation depth was not reached in time."""

    def __init__(
        self,
        message: str,
        timeout_duration: Optional[float] = None,
        transaction_hash: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            error_code="CONFIRMATION_TIMEOUT",
            category=ErrorCategory.TIMEOUT,
            retryable=True,
            **kwargs,
        )
        self.timeout_duration = timeout_duration
        self.transaction_hash = transaction_hash

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "timeout_duration": self.timeout_duration,
                "transaction_hash": self.transaction_hash,
            }
        )
        return data


class DecryptionFailure(FhevmClientError):
    """The decryption provider round trip failed."""

    def __init__(
        self, message: str, handles: Optional[List[str]] = None, **kwargs
    ):
        super().__init__(
            message,
            error_code="DECRYPTION_FAILURE",
            category=ErrorCategory.DECRYPTION,
            retryable=True,
            **kwargs,
        )
        self.handles = list(handles or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["handles"] = self.handles
        return data


class NoPendingOperation(FhevmClientError):
    """A second-phase call was made without a first-phase handle."""

    def __init__(self, message: str = "No pending operation", **kwargs):
        super().__init__(
            message, error_code="NO_PENDING_OPERATION", category=ErrorCategory.STATE, **kwargs
        )


class WorkflowBusy(FhevmClientError):
    """The workflow instance is already running an operation."""

    def __init__(self, message: str = "Operation already in progress", **kwargs):
        super().__init__(
            message, error_code="WORKFLOW_BUSY", category=ErrorCategory.STATE, **kwargs
        )


def create_validation_error(
    field: str, value: Any, expected: Any, message: Optional[str] = None
) -> BatchValidationError:
    """Create a validation error."""
    if message is None:
        message = f"Invalid value for field '{field}': expected {expected}, got {value}"

    return BatchValidationError(
        message=message, field=field, value=value, expected=expected
    )


def create_timeout_error(
    transaction_hash: str, timeout_duration: float, message: Optional[str] = None
) -> ConfirmationTimeout:
    """Create a confirmation timeout error."""
    if message is None:
        message = (
            f"Transaction {transaction_hash} not confirmed after "
            f"{timeout_duration} seconds"
        )

    return ConfirmationTimeout(
        message=message,
        timeout_duration=timeout_duration,
        transaction_hash=transaction_hash,
    )
