"""
Microprediction API client - streams, predictions and account endpoints.

Every method is one HTTP request followed by typed decoding of the JSON
body. Account and mutating endpoints need ``config.write_key``.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import aiohttp
from loguru import logger

from microprediction.config import Config
from microprediction.errors import ValidationError
from microprediction.records import (
    StreamSummary,
    Transaction,
    decode_float,
    decode_float_list,
    decode_float_map,
    decode_object,
    decode_optional_float,
    decode_string_list,
    decode_string_map,
    decode_transactions,
)
from microprediction.timeseries import LaggedSeries, decode_epoch_times, decode_lagged
from microprediction.transport import request_json


class MicropredictionClient:
    """
    Client for the microprediction.org API.

    Stream names can be plain (``cop.json``) or carry a prefix such as
    ``lagged_values::cop.json`` or ``delayed::70::cop.json``.
    """

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "MicropredictionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    'Accept': 'application/json',
                    'User-Agent': 'microprediction-python/0.1'
                }
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close the HTTP session if this client created it"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    # ==================== Plumbing ====================

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        session = await self._get_session()
        return await request_json(session, method, self._url(path), params)

    @staticmethod
    def _stream(name: str) -> str:
        if not name or not name.strip():
            raise ValidationError("stream name must not be empty")
        return quote(name, safe=":.-_")

    def _write_key(self) -> str:
        return quote(self.config.require_write_key(), safe="")

    def _delay(self, delay: Optional[int]) -> int:
        if delay is None:
            return self.config.default_delay
        return self.config.require_delay(delay)

    # ==================== Public stream data ====================

    async def get_current_value(self, stream_name: str) -> Optional[float]:
        """Latest value of a stream, or None if the stream is unknown"""
        raw = await self._request("GET", f"/live/{self._stream(stream_name)}")
        return decode_optional_float(raw, stream_name)

    async def get_leaderboard(self, stream_name: str, delay: Optional[int] = None) -> Dict[str, float]:
        """Leaderboard for a stream at one delay horizon"""
        delay = self._delay(delay)
        raw = await self._request(
            "GET", f"/leaderboards/{self._stream(stream_name)}", {"delay": delay}
        )
        if raw is None:
            return {}
        return decode_float_map(raw, f"leaderboard::{stream_name}")

    async def get_overall(self) -> Dict[str, float]:
        """Overall leaderboard across all streams"""
        return decode_float_map(await self._request("GET", "/overall"), "overall")

    async def get_sponsors(self) -> Dict[str, str]:
        """Stream name -> sponsor"""
        return decode_string_map(await self._request("GET", "/sponsors/"), "sponsors")

    async def get_budgets(self) -> Dict[str, float]:
        return decode_float_map(await self._request("GET", "/budgets/"), "budgets")

    async def get_summary(self, stream_name: str) -> StreamSummary:
        raw = await self._request("GET", f"/live/summary::{self._stream(stream_name)}")
        return StreamSummary.from_json(stream_name, raw)

    async def get_lagged_values(self, stream_name: str) -> List[float]:
        """Lagged values, in the order the service returns them (newest first)"""
        raw = await self._request("GET", f"/live/lagged_values::{self._stream(stream_name)}")
        return decode_float_list(raw, f"lagged_values::{stream_name}")

    async def get_lagged_times(self, stream_name: str) -> List[datetime]:
        """Lagged times as UTC datetimes, in the order the service returns them"""
        raw = await self._request("GET", f"/live/lagged_times::{self._stream(stream_name)}")
        return decode_epoch_times(raw)

    async def get_lagged(self, stream_name: str) -> LaggedSeries:
        """Lagged times and values, oldest first"""
        raw = await self._request("GET", f"/live/lagged::{self._stream(stream_name)}")
        series = decode_lagged(raw)
        logger.debug(f"Decoded {len(series)} lagged points for {stream_name}")
        return series

    async def get_delayed_value(self, stream_name: str, delay: Optional[int] = None) -> Optional[float]:
        """Value quarantined for ``delay`` seconds (defaults to the first configured delay)"""
        delay = self._delay(delay)
        raw = await self._request("GET", f"/live/delayed::{delay}::{self._stream(stream_name)}")
        return decode_optional_float(raw, f"delayed::{delay}::{stream_name}")

    # ==================== Stream writes ====================

    async def write(self, stream_name: str, value: float) -> Dict[str, Any]:
        """Append a value to a stream, creating the stream if needed"""
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"stream value must be a finite number, got {value!r}")
        raw = await self._request(
            "PUT", f"/live/{self._stream(stream_name)}",
            {"write_key": self.config.require_write_key(), "value": value},
        )
        logger.info(f"Wrote {value} to {stream_name}")
        return decode_object(raw, f"write::{stream_name}")

    async def delete(self, stream_name: str) -> Dict[str, Any]:
        raw = await self._request(
            "DELETE", f"/live/{self._stream(stream_name)}",
            {"write_key": self.config.require_write_key()},
        )
        logger.info(f"Deleted stream {stream_name}")
        return decode_object(raw, f"delete::{stream_name}")

    async def touch(self, stream_name: str) -> Dict[str, Any]:
        """Extend a stream's time to live without writing a value"""
        raw = await self._request(
            "PATCH", f"/live/{self._stream(stream_name)}",
            {"write_key": self.config.require_write_key()},
        )
        return decode_object(raw, f"touch::{stream_name}")

    # ==================== Errors and warnings ====================

    async def get_errors(self) -> List[str]:
        raw = await self._request("GET", f"/errors/{self._write_key()}")
        return decode_string_list(raw or [], "errors")

    async def get_warnings(self) -> List[str]:
        raw = await self._request("GET", f"/warnings/{self._write_key()}")
        return decode_string_list(raw or [], "warnings")

    async def delete_errors(self) -> Any:
        return await self._request("DELETE", f"/errors/{self._write_key()}")

    async def delete_warnings(self) -> Any:
        return await self._request("DELETE", f"/warnings/{self._write_key()}")

    # ==================== Account ====================

    async def get_balance(self) -> float:
        """Balance of the configured write key"""
        raw = await self._request("GET", f"/balance/{self._write_key()}")
        return decode_float(raw, "balance")

    async def is_bankrupt(self) -> bool:
        balance = await self.get_balance()
        bankrupt = self.config.is_bankrupt(balance)
        if bankrupt:
            logger.warning(f"Write key is bankrupt: balance {balance} < {self.config.min_balance}")
        return bankrupt

    async def get_active(self) -> List[str]:
        """Streams (with delay) holding predictions that can still be judged"""
        raw = await self._request("GET", f"/active/{self._write_key()}")
        return decode_string_list(raw or [], "active")

    async def get_transactions(self) -> List[Transaction]:
        raw = await self._request("GET", f"/transactions/{self._write_key()}")
        return decode_transactions(raw or [])

    async def get_performance(self) -> Dict[str, float]:
        """Cumulative performance per ``stream::delay``"""
        raw = await self._request("GET", f"/performance/{self._write_key()}")
        return decode_float_map(raw or {}, "performance")

    # ==================== Predictions ====================

    async def submit(
        self,
        stream_name: str,
        values: Sequence[float],
        delay: Optional[int] = None
    ) -> Any:
        """
        Submit a scenario set for a stream and delay horizon.

        Args:
            stream_name: Target stream.
            values: Exactly ``config.num_predictions`` finite numbers.
            delay: Horizon in seconds; defaults to the first configured delay.
        """
        write_key = self.config.require_write_key()
        delay = self._delay(delay)
        values = list(values)
        if len(values) != self.config.num_predictions:
            raise ValidationError(
                f"Number of values must equal {self.config.num_predictions}, got {len(values)}"
            )
        for i, v in enumerate(values):
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise ValidationError(f"values[{i}] must be a finite number, got {v!r}")

        raw = await self._request(
            "PUT", f"/submit/{self._stream(stream_name)}",
            {
                "write_key": write_key,
                "delay": delay,
                "values": ",".join(repr(float(v)) for v in values),
            },
        )
        logger.info(f"Submitted {len(values)} values to {stream_name} (delay={delay})")
        return raw

    async def cancel(self, stream_name: str, delay: Optional[int] = None) -> Any:
        """Withdraw a previously submitted scenario set"""
        write_key = self.config.require_write_key()
        delay = self._delay(delay)
        raw = await self._request(
            "DELETE", f"/submit/{self._stream(stream_name)}",
            {"write_key": write_key, "delay": delay},
        )
        logger.info(f"Cancelled submission on {stream_name} (delay={delay})")
        return raw
