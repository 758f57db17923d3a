"""Schema analyzer for encrypted contract calls.

Classifies the declared inputs of a contract function into plain,
encrypted and proof roles, preserving ABI declaration order.
"""

import logging
from typing import Any, Dict, List, Sequence

from ..errors import InvalidSchema, SchemaNotFound
from ..types import (
    ENCRYPTED_TYPE_MARKER,
    PROOF_PARAMETER_NAMES,
    EncryptedKind,
    ParameterDescriptor,
    ParameterRole,
)

logger = logging.getLogger(__name__)

# ABI types an encrypted handle may be declared as.
ENCRYPTED_CARRIER_TYPES = ("bytes32", "bytes", "uint256")


def function_signature(fragment: Dict[str, Any]) -> str:
    """Canonical ``name(type,...)`` signature of an ABI function fragment."""
    types = ",".join(item.get("type", "") for item in fragment.get("inputs", []))
    return f"{fragment.get('name', '')}({types})"


def find_function(abi: Sequence[Dict[str, Any]], function: str) -> Dict[str, Any]:
    """Look up a function fragment by bare name or canonical signature.

    A bare name that matches several overloads is ambiguous and must be
    given as a full signature.
    """
    by_signature = "(" in function
    matches = [
        item
        for item in abi
        if item.get("type") == "function"
        and (
            function_signature(item) == function
            if by_signature
            else item.get("name") == function
        )
    ]
    if not matches:
        raise SchemaNotFound(function)
    if len(matches) > 1:
        raise InvalidSchema(
            function,
            f"Function {function} is overloaded; use one of: "
            + ", ".join(function_signature(m) for m in matches),
        )
    return matches[0]


def _strip_array(type_name: str) -> str:
    return type_name.split("[", 1)[0]


def classify_parameter(function: str, position: int, param: Dict[str, Any]) -> ParameterDescriptor:
    """Classify a single ABI input."""
    name = param.get("name", "")
    declared_type = param.get("type", "")
    internal_type = param.get("internalType") or ""

    if internal_type.startswith(ENCRYPTED_TYPE_MARKER):
        suffix = _strip_array(internal_type[len(ENCRYPTED_TYPE_MARKER):])
        try:
            kind = EncryptedKind.from_suffix(suffix)
        except ValueError:
            raise InvalidSchema(
                function,
                f"Unknown encrypted type {internal_type} for parameter {name!r} "
                f"in function {function}",
            ) from None
        if _strip_array(declared_type) not in ENCRYPTED_CARRIER_TYPES:
            raise InvalidSchema(
                function,
                f"Encrypted parameter {name!r} declared as unsupported type "
                f"{declared_type} in function {function}",
            )
        return ParameterDescriptor(
            name=name,
            declared_type=declared_type,
            role=ParameterRole.ENCRYPTED,
            position=position,
            kind=kind,
            internal_type=internal_type,
        )

    if declared_type == "bytes" and name in PROOF_PARAMETER_NAMES:
        return ParameterDescriptor(
            name=name,
            declared_type=declared_type,
            role=ParameterRole.PROOF,
            position=position,
            internal_type=internal_type or None,
        )

    return ParameterDescriptor(
        name=name,
        declared_type=declared_type,
        role=ParameterRole.PLAIN,
        position=position,
        internal_type=internal_type or None,
    )


def classify(abi: Sequence[Dict[str, Any]], function: str) -> List[ParameterDescriptor]:
    """Classify every declared input of ``function`` in declaration order.

    Raises:
        SchemaNotFound: the function is not in the ABI.
        InvalidSchema: the function declares no inputs, is ambiguous, or
            uses an unrecognised encrypted type.
    """
    fragment = find_function(abi, function)
    inputs = fragment.get("inputs") or []
    if not inputs:
        raise InvalidSchema(function)

    descriptors = [
        classify_parameter(function, position, param)
        for position, param in enumerate(inputs)
    ]
    logger.debug(
        "Classified %s: %s", function, ", ".join(str(d) for d in descriptors)
    )
    return descriptors


class SchemaAnalyzer:
    """Classifies functions of one ABI, caching descriptors per function."""

    def __init__(self, abi: Sequence[Dict[str, Any]]):
        self.abi = list(abi)
        self._cache: Dict[str, List[ParameterDescriptor]] = {}

    def classify(self, function: str) -> List[ParameterDescriptor]:
        """Classify ``function``; the descriptor list is derived only once."""
        if function not in self._cache:
            self._cache[function] = classify(self.abi, function)
        return list(self._cache[function])

    def encrypted_kinds(self, function: str) -> List[EncryptedKind]:
        """Kinds of the encrypted parameters of ``function`` in declaration order."""
        return [
            d.kind for d in self.classify(function) if d.role is ParameterRole.ENCRYPTED
        ]

    def has_function(self, function: str) -> bool:
        try:
            find_function(self.abi, function)
        except SchemaNotFound:
            return False
        except InvalidSchema:
            return True
        return True
