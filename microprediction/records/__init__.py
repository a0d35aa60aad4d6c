"""
Typed decoding of JSON responses, one decoder per endpoint shape.
"""

from .decode import (
    decode_epoch,
    decode_float,
    decode_optional_float,
    decode_float_list,
    decode_string_list,
    decode_float_map,
    decode_string_map,
    decode_object,
)
from .models import StreamSummary, Transaction, decode_transactions

__all__ = [
    "decode_epoch", "decode_float", "decode_optional_float",
    "decode_float_list", "decode_string_list",
    "decode_float_map", "decode_string_map", "decode_object",
    "StreamSummary", "Transaction", "decode_transactions",
]
