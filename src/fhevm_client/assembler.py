"""Parameter assembler.

Merges classified parameter slots, one ciphertext batch and the
caller's extra plaintext arguments into a call argument list that
matches the function's declared parameter order exactly.

Two cursors walk the batch handles and the extra plaintext values.
Scalar encrypted slots take one handle each; an array-typed encrypted
slot (batch-variadic mode, e.g. a different amount per recipient)
takes several handles from the same batch. Every proof slot receives
the batch's single shared proof.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .errors import AssemblyMismatch
from .handles import handle_to_int
from .types import CiphertextBatch, ParameterDescriptor, ParameterRole

logger = logging.getLogger(__name__)


def encode_handle(handle: str, declared_type: str) -> Any:
    """Encode a handle for its declared ABI representation."""
    base_type = declared_type.split("[", 1)[0]
    if base_type == "uint256":
        return handle_to_int(handle)
    # bytes32 and bytes both take the hex reference as-is
    return handle


def _encrypted_slots_after(descriptors: Sequence[ParameterDescriptor], index: int) -> int:
    return sum(
        1
        for d in descriptors[index + 1:]
        if d.role is ParameterRole.ENCRYPTED and not d.is_array
    )


def assemble(
    descriptors: Sequence[ParameterDescriptor],
    batch: CiphertextBatch,
    extra_plain: Sequence[Any] = (),
    array_lengths: Optional[Dict[str, int]] = None,
) -> List[Any]:
    """Build the ordered call arguments for a classified function.

    Args:
        descriptors: classified parameters in declaration order.
        batch: the ciphertext batch from a single encryption session.
        extra_plain: values for the plain parameters, in order.
        array_lengths: handles to place in each array-typed encrypted
            parameter, keyed by parameter name. Without an entry an array
            slot takes every handle not needed by later scalar slots.

    Raises:
        AssemblyMismatch: naming the first parameter that could not be
            matched, or reporting unused handles or extra values.
    """
    array_lengths = array_lengths or {}
    handles = batch.handles
    args: List[Any] = []
    handle_cursor = 0
    plain_cursor = 0

    for index, descriptor in enumerate(descriptors):
        if descriptor.role is ParameterRole.ENCRYPTED:
            remaining = len(handles) - handle_cursor
            if descriptor.is_array:
                count = array_lengths.get(
                    descriptor.name,
                    remaining - _encrypted_slots_after(descriptors, index),
                )
                if count < 1 or count > remaining:
                    raise AssemblyMismatch(
                        f"Cannot fill encrypted array {descriptor.label}: "
                        f"{remaining} handle(s) left, {count} requested",
                        parameter=descriptor.name,
                    )
                args.append(
                    [
                        encode_handle(h, descriptor.declared_type)
                        for h in handles[handle_cursor:handle_cursor + count]
                    ]
                )
                handle_cursor += count
            else:
                if remaining < 1:
                    raise AssemblyMismatch(
                        f"No encrypted handle left for {descriptor.label}; "
                        f"batch holds {len(handles)} handle(s)",
                        parameter=descriptor.name,
                    )
                args.append(
                    encode_handle(handles[handle_cursor], descriptor.declared_type)
                )
                handle_cursor += 1

        elif descriptor.role is ParameterRole.PROOF:
            args.append(batch.proof)

        else:
            if plain_cursor >= len(extra_plain):
                raise AssemblyMismatch(
                    f"Missing parameter for {descriptor.label}. "
                    f"Expected more than {len(extra_plain)} additional params.",
                    parameter=descriptor.name,
                )
            args.append(extra_plain[plain_cursor])
            plain_cursor += 1

    if handle_cursor != len(handles):
        raise AssemblyMismatch(
            f"{len(handles) - handle_cursor} encrypted handle(s) left unused "
            f"after filling {len(descriptors)} parameter(s)"
        )
    if plain_cursor != len(extra_plain):
        raise AssemblyMismatch(
            f"{len(extra_plain) - plain_cursor} extra plain value(s) left unused "
            f"after filling {len(descriptors)} parameter(s)"
        )

    logger.debug(
        "Assembled %d argument(s) from %d handle(s) and %d plain value(s)",
        len(args),
        len(handles),
        len(extra_plain),
    )
    return args
