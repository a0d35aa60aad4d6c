"""
Typed records for account and stream responses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from microprediction.errors import MalformedPayload
from microprediction.records.decode import (
    decode_epoch,
    decode_float,
    decode_float_list,
    decode_list,
    decode_object,
)


@dataclass(frozen=True)
class StreamSummary:
    """Summary block for a stream (``/live/summary::<name>``)"""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, name: str, raw: Any) -> "StreamSummary":
        return cls(name=name, data=decode_object(raw, f"summary::{name}"))

    @property
    def delays(self) -> List[int]:
        raw = self.data.get("delays") or []
        return [int(d) for d in decode_float_list(raw, "summary.delays")]

    @property
    def lagged_values(self) -> Optional[List[float]]:
        raw = self.data.get("lagged_values")
        if raw is None:
            return None
        return decode_float_list(raw, "summary.lagged_values")

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class Transaction:
    """One settlement or charge against a write key"""
    amount: float
    stream: Optional[str] = None
    delay: Optional[int] = None
    settled_at: Optional[datetime] = None
    kind: Optional[str] = None

    # Raw data for debugging
    raw: Optional[dict] = None

    def __repr__(self):
        where = f"{self.stream}::{self.delay}" if self.stream else "account"
        return f"<Transaction {self.amount:+.4f} on {where}>"

    @classmethod
    def from_json(cls, raw: Any, index: int = 0) -> "Transaction":
        what = f"transactions[{index}]"
        data = decode_object(raw, what)
        if "amount" not in data:
            raise MalformedPayload(f"{what}: missing 'amount'")

        delay = data.get("delay")
        epoch = data.get("epoch_time")
        stream = data.get("stream") or data.get("name")
        return cls(
            amount=decode_float(data["amount"], f"{what}.amount"),
            stream=str(stream) if stream is not None else None,
            delay=int(decode_float(delay, f"{what}.delay")) if delay is not None else None,
            settled_at=decode_epoch(epoch, f"{what}.epoch_time") if epoch is not None else None,
            kind=data.get("type"),
            raw=data,
        )


def decode_transactions(raw: Any) -> List[Transaction]:
    items = decode_list(raw, "transactions")
    return [Transaction.from_json(item, i) for i, item in enumerate(items)]
