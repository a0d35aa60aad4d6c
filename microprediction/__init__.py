"""
Client library for the microprediction.org live data service.

Reads stream values and lagged histories, writes to streams, submits
scenario sets for delay horizons and reads account state.
"""

from .config import Config, load_config
from .core import MicropredictionClient
from .errors import (
    MicropredictionError,
    TransportError,
    RemoteError,
    DecodeError,
    MalformedPayload,
    NonNumericField,
    ValidationError,
)
from .records import StreamSummary, Transaction
from .timeseries import LaggedPoint, LaggedSeries, decode_lagged

__all__ = [
    "Config", "load_config", "MicropredictionClient",
    "MicropredictionError", "TransportError", "RemoteError",
    "DecodeError", "MalformedPayload", "NonNumericField", "ValidationError",
    "StreamSummary", "Transaction",
    "LaggedPoint", "LaggedSeries", "decode_lagged",
]

__version__ = "0.1.0"
