"""ABI introspection and bundled contract ABIs."""

from .contracts import EBATCHER_ABI, ERC7984_ABI, EWETH_ABI
from .schema import (
    SchemaAnalyzer,
    classify,
    classify_parameter,
    find_function,
    function_signature,
)

__all__ = [
    "SchemaAnalyzer",
    "classify",
    "classify_parameter",
    "find_function",
    "function_signature",
    "EBATCHER_ABI",
    "ERC7984_ABI",
    "EWETH_ABI",
]
