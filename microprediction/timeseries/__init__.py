from .lagged import (
    LaggedPoint,
    LaggedSeries,
    decode_lagged,
    decode_epoch_times,
)

__all__ = [
    'LaggedPoint', 'LaggedSeries',
    'decode_lagged', 'decode_epoch_times',
]
