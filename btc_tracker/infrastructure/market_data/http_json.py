"""
Shared httpx plumbing for the market-data adapters.

Every transport problem (timeout, connection error, non-2xx status, body that
is not JSON) is translated into ProviderError here, so adapters only deal with
the provider-specific response shape.
"""

import math
from typing import Any, Optional

import httpx

from btc_tracker.domain.errors import ProviderError

USER_AGENT = "btc-fng-tracker/1.0"
DEFAULT_HEADERS = {"accept": "application/json", "user-agent": USER_AGENT}


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict] = None,
    timeout: float = 8.0,
) -> Any:
    try:
        response = await client.get(url, params=params, headers=DEFAULT_HEADERS, timeout=timeout)
    except httpx.TimeoutException as exc:
        raise ProviderError(f"timeout after {timeout:g}s") from exc
    except httpx.HTTPError as exc:
        raise ProviderError(f"network error: {exc.__class__.__name__}") from exc

    if not response.is_success:
        raise ProviderError(f"HTTP {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError("malformed JSON body") from exc


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(current, dict):
            current = current.get(step)
        elif isinstance(current, list) and isinstance(step, int) and -len(current) <= step < len(current):
            current = current[step]
        else:
            return None
    return current


def finite_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
