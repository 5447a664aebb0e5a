"""Value transformers: the per-value anonymization functions."""

from batchscrub.transformers.base import BaseTransformer, ValueTransformer
from batchscrub.transformers.builtin import (
    HmacHashTransformer,
    NullifyTransformer,
    RedactTransformer,
    ScrubEmailTransformer,
    SqlFunctionTransformer,
)
from batchscrub.transformers.manager import TransformerManager, TransformerSpec

__all__ = [
    "BaseTransformer",
    "HmacHashTransformer",
    "NullifyTransformer",
    "RedactTransformer",
    "ScrubEmailTransformer",
    "SqlFunctionTransformer",
    "TransformerManager",
    "TransformerSpec",
    "ValueTransformer",
]
