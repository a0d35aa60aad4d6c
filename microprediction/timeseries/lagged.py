"""
Lagged time-series decoding.

The service returns lagged observations as a flat JSON array of
``[epoch_seconds, value]`` pairs in no guaranteed order (usually newest
first). ``decode_lagged`` validates the shape, converts epoch seconds to
UTC datetimes and returns them oldest first.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, List, Optional, Tuple, Union

from microprediction.errors import MalformedPayload
from microprediction.records.decode import decode_epoch, decode_float


@dataclass(frozen=True)
class LaggedPoint:
    """A single historical observation"""
    timestamp: datetime
    value: float

    @property
    def epoch(self) -> float:
        """Seconds since the Unix epoch, fractional part included"""
        return self.timestamp.timestamp()

    def __repr__(self):
        return f"<LaggedPoint {self.timestamp.isoformat()} {self.value}>"


@dataclass(frozen=True)
class LaggedSeries:
    """
    Read-only snapshot of a stream's lagged observations.

    Points are ordered by ascending timestamp; equal timestamps keep the
    order in which the service sent them.
    """
    points: Tuple[LaggedPoint, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[LaggedPoint]:
        return iter(self.points)

    def __getitem__(self, index: Union[int, slice]):
        return self.points[index]

    @property
    def timestamps(self) -> List[datetime]:
        return [p.timestamp for p in self.points]

    @property
    def values(self) -> List[float]:
        return [p.value for p in self.points]

    @property
    def earliest(self) -> Optional[LaggedPoint]:
        return self.points[0] if self.points else None

    @property
    def latest(self) -> Optional[LaggedPoint]:
        return self.points[-1] if self.points else None

    def to_pairs(self) -> List[List[float]]:
        """Serialize back to the wire shape ``[[epoch, value], ...]``."""
        return [[p.epoch, p.value] for p in self.points]


def _split_pair(item: Any, index: int) -> Tuple[Any, Any]:
    if isinstance(item, (str, bytes)) or not isinstance(item, Sequence):
        raise MalformedPayload(f"lagged[{index}]: expected [time, value] pair, got {item!r}")
    if len(item) != 2:
        raise MalformedPayload(
            f"lagged[{index}]: expected 2 components, got {len(item)}"
        )
    return item[0], item[1]


def decode_lagged(raw_pairs: Any) -> LaggedSeries:
    """
    Decode ``[[t0, v0], [t1, v1], ...]`` into a LaggedSeries.

    Raises:
        MalformedPayload: ``raw_pairs`` is not an array, or an element does
            not have exactly two components.
        NonNumericField: a timestamp or value is not a number.
    """
    if isinstance(raw_pairs, (str, bytes)) or not isinstance(raw_pairs, Sequence):
        raise MalformedPayload(f"lagged: expected array, got {type(raw_pairs).__name__}")

    parsed = []
    for index, item in enumerate(raw_pairs):
        raw_time, raw_value = _split_pair(item, index)
        seconds = decode_float(raw_time, f"lagged[{index}].timestamp")
        value = decode_float(raw_value, f"lagged[{index}].value")
        parsed.append((seconds, decode_epoch(seconds, f"lagged[{index}].timestamp"), value))

    # sorted() is stable, so ties keep input order
    parsed = sorted(parsed, key=lambda row: row[0])
    return LaggedSeries(points=tuple(LaggedPoint(timestamp=ts, value=v) for _, ts, v in parsed))


def decode_epoch_times(raw: Any) -> List[datetime]:
    """Decode a JSON array of epoch seconds, keeping the server's order."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise MalformedPayload(f"lagged_times: expected array, got {type(raw).__name__}")
    return [decode_epoch(item, f"lagged_times[{i}]") for i, item in enumerate(raw)]
