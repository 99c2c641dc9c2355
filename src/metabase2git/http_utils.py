"""HTTP utilities for JSON requests against the Metabase API."""

from __future__ import annotations

import asyncio
from typing import Any, Final

import httpx

from metabase2git.config import (
    METABASE2GIT_FETCH_BACKOFF_S,
    METABASE2GIT_FETCH_MAX_RETRIES,
    METABASE2GIT_FETCH_TIMEOUT_S,
    METABASE2GIT_USER_AGENT,
)
from metabase2git.exceptions import TransportError

RETRY_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


def build_client(base_url: str) -> httpx.AsyncClient:
    """Create the shared client used for every request of a run."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(METABASE2GIT_FETCH_TIMEOUT_S),
        headers={"User-Agent": METABASE2GIT_USER_AGENT},
        follow_redirects=True,
    )


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    json: Any = None,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """Send a request and decode its JSON body.

    Transient statuses (see ``RETRY_STATUS_CODES``) and network errors are
    retried up to ``METABASE2GIT_FETCH_MAX_RETRIES`` times with exponential
    backoff. With the default of zero retries a single attempt is made.

    Args:
        client: Client carrying the base URL and default headers.
        method: HTTP method.
        url: Path relative to the client's base URL.
        json: Optional JSON request body.
        params: Optional query parameters.
        headers: Extra headers for this request.

    Returns:
        The decoded JSON payload.

    Raises:
        TransportError: If the request fails, returns an error status, or the
            body is not valid JSON.
    """
    last_exc: Exception | None = None

    for attempt in range(METABASE2GIT_FETCH_MAX_RETRIES + 1):
        try:
            response = await client.request(method, url, json=json, params=params, headers=headers)

            if response.status_code in RETRY_STATUS_CODES:
                last_exc = TransportError(f"HTTP {response.status_code} from {method} {url}")
            else:
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError as exc:
                    raise TransportError(f"Invalid JSON from {method} {url}: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"HTTP {exc.response.status_code} from {method} {url}") from exc
        except httpx.RequestError as exc:
            last_exc = exc

        if attempt < METABASE2GIT_FETCH_MAX_RETRIES:
            backoff = METABASE2GIT_FETCH_BACKOFF_S * (2**attempt)
            await asyncio.sleep(backoff)

    raise TransportError(f"Failed to {method} {url}: {last_exc}")
