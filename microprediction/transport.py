"""
Single-shot HTTP + JSON exchange with the microprediction service.

One call, one request: no retries, no failover, no session state beyond
the aiohttp connection pool owned by the caller.
"""

import asyncio
import json
from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from microprediction.errors import MalformedPayload, RemoteError, TransportError

METHODS = ("GET", "PUT", "PATCH", "DELETE")


def _stringify(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """aiohttp only accepts str/int/float query values; None entries are dropped"""
    if not params:
        return None
    return {k: str(v) for k, v in params.items() if v is not None}


def _lenient_text(raw: bytes, charset: str) -> str:
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Issue one request and decode the JSON body.

    Raises:
        TransportError: the request failed before a response arrived.
        RemoteError: the response status is not 2xx.
        MalformedPayload: the body is not valid JSON.
    """
    method = method.upper()
    if method not in METHODS:
        raise ValueError(f"unsupported method {method}")

    logger.debug(f"{method} {url} params={sorted((params or {}).keys())}")
    try:
        async with session.request(method, url, params=_stringify(params)) as response:
            raw = await response.read()
            charset = response.charset or "utf-8"
            if not 200 <= response.status < 300:
                logger.warning(f"{method} {url} -> HTTP {response.status}")
                raise RemoteError(response.status, url, _lenient_text(raw, charset))
    except aiohttp.ClientError as e:
        raise TransportError(url, str(e) or type(e).__name__) from e
    except asyncio.TimeoutError as e:
        raise TransportError(url, "timed out") from e

    try:
        body = raw.decode(charset)
    except (UnicodeDecodeError, LookupError) as e:
        raise MalformedPayload(f"{url}: body is not valid {charset} text") from e

    try:
        return json.loads(body)
    except ValueError as e:
        raise MalformedPayload(f"{url}: body is not JSON ({e})") from e
