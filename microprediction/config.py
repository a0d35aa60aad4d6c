"""
Service configuration for the microprediction client.

The service publishes its parameters (delay horizons, scenario count,
bankruptcy threshold) at CONFIG_URL. They are fetched once and frozen into
a Config value that is handed to the client explicitly.
"""

import math
import os
from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple

import aiohttp
from loguru import logger

from microprediction.transport import request_json
from microprediction.errors import MalformedPayload, NonNumericField, ValidationError
from microprediction.records.decode import decode_float, decode_list, decode_object

BASE_URL = "http://api.microprediction.org"
FAILOVER_BASE_URL = "http://stableapi.microprediction.org"
CONFIG_URL = "http://config.microprediction.org/config.json"

WRITE_KEY_ENV = "MICROPREDICTION_WRITE_KEY"
BASE_URL_ENV = "MICROPREDICTION_BASE_URL"


def _decode_count(raw: Any, field: str, minimum: int = 0) -> int:
    """Whole, finite number no smaller than ``minimum`` from config.json"""
    value = decode_float(raw, field)
    if not math.isfinite(value):
        raise NonNumericField(field, raw, f"{field} is not finite: {raw!r}")
    if not value.is_integer() or value < minimum:
        raise MalformedPayload(f"{field}: expected a whole number >= {minimum}, got {raw!r}")
    return int(value)


@dataclass(frozen=True)
class Config:
    """Immutable client configuration"""
    num_predictions: int
    delays: Tuple[int, ...]
    min_balance: float
    min_len: int
    write_key: Optional[str] = None
    base_url: str = BASE_URL
    # Carried for callers that want to switch hosts; never used automatically
    failover_base_url: str = FAILOVER_BASE_URL

    def __post_init__(self):
        if not self.delays:
            raise ValidationError("Config needs at least one delay horizon")
        if self.num_predictions <= 0:
            raise ValidationError(f"num_predictions must be positive, got {self.num_predictions}")

    @classmethod
    def from_remote(
        cls,
        payload: Any,
        write_key: Optional[str] = None,
        base_url: str = BASE_URL,
        failover_base_url: str = FAILOVER_BASE_URL,
    ) -> "Config":
        """
        Build a Config from the decoded config.json object.

        Args:
            payload: Parsed JSON from CONFIG_URL.
            write_key: Optional write key for account and mutating endpoints.
            base_url: API host to talk to.
            failover_base_url: Secondary API host.
        """
        data = decode_object(payload, "config")
        for key in ("delays", "min_balance", "min_len", "num_predictions"):
            if key not in data:
                raise MalformedPayload(f"config: missing '{key}'")

        delays = tuple(_decode_count(d, f"config.delays[{i}]", minimum=1)
                       for i, d in enumerate(decode_list(data["delays"], "config.delays")))
        if not delays:
            raise MalformedPayload("config: 'delays' is empty")

        return cls(
            num_predictions=_decode_count(data["num_predictions"], "config.num_predictions", minimum=1),
            delays=delays,
            min_balance=decode_float(data["min_balance"], "config.min_balance"),
            min_len=_decode_count(data["min_len"], "config.min_len"),
            write_key=write_key,
            base_url=base_url.rstrip("/"),
            failover_base_url=failover_base_url.rstrip("/"),
        )

    @property
    def default_delay(self) -> int:
        return self.delays[0]

    def with_write_key(self, write_key: Optional[str]) -> "Config":
        return replace(self, write_key=write_key)

    def require_write_key(self) -> str:
        if not self.write_key:
            raise ValidationError("this operation needs a write key")
        return self.write_key

    def require_delay(self, delay: int) -> int:
        if delay not in self.delays:
            raise ValidationError(f"delay {delay} is not one of {list(self.delays)}")
        return delay

    def is_bankrupt(self, balance: float) -> bool:
        """A key whose balance has fallen below min_balance can no longer submit"""
        return math.isnan(balance) or balance < self.min_balance


async def load_config(
    session: aiohttp.ClientSession,
    write_key: Optional[str] = None,
    config_url: str = CONFIG_URL,
    base_url: Optional[str] = None,
) -> Config:
    """
    Fetch config.json and freeze it into a Config.

    ``write_key`` and ``base_url`` fall back to the MICROPREDICTION_WRITE_KEY
    and MICROPREDICTION_BASE_URL environment variables.
    """
    write_key = write_key if write_key is not None else os.getenv(WRITE_KEY_ENV)
    base_url = base_url or os.getenv(BASE_URL_ENV) or BASE_URL

    logger.debug(f"Fetching service config from {config_url}")
    payload = await request_json(session, "GET", config_url)

    config = Config.from_remote(payload, write_key=write_key, base_url=base_url)
    logger.info(
        f"Loaded config: {config.num_predictions} predictions, delays={list(config.delays)}, "
        f"write key {'set' if config.write_key else 'not set'}"
    )
    return config
