"""Async HTTP download helper for curated package lists.

A thin wrapper around ``httpx.AsyncClient`` with standardised timeouts,
user-agent header and error handling, so every source fetcher behaves
the same way and can be tested with ``httpx.MockTransport``.

Raises ``SourceUnavailableError`` on any unrecoverable HTTP failure; the
caller decides whether to degrade to "no corroborations".
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import httpx

from trustvet import __version__
from trustvet.exceptions import SourceUnavailableError

logger = logging.getLogger(__name__)

# Timeout for all source downloads (seconds). Curated lists are large.
DEFAULT_TIMEOUT: float = 120.0

USER_AGENT: str = f"trustvet/{__version__}"


async def fetch_bytes(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Download *url* and return the response body.

    Args:
        url: The URL to fetch.
        timeout: Request timeout in seconds.
        transport: Optional transport override (used by tests).

    Returns:
        The raw response body.

    Raises:
        SourceUnavailableError: On timeouts, HTTP errors, or connection
            failures.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.content
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise SourceUnavailableError(f"Timeout fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        logger.warning("HTTP %d from %s", exc.response.status_code, url)
        raise SourceUnavailableError(
            f"HTTP {exc.response.status_code} from {url}"
        ) from exc
    except httpx.RequestError as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise SourceUnavailableError(f"Cannot fetch {url}: {exc}") from exc


async def download_to(
    url: str,
    target: Path,
    *,
    refresh: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """Ensure *url* is cached at *target* and return the path.

    An existing file is reused unless *refresh* is set. The body goes to
    a temporary file renamed into place, so an interrupted fetch never
    leaves a truncated cache.

    Raises:
        SourceUnavailableError: If the download fails or the cache
            directory is not writable.
    """
    if target.exists() and not refresh:
        logger.debug("Using cached %s", target)
        return target

    body = await fetch_bytes(url, transport=transport)
    tmp = target.with_name(f"{target.name}.tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(body)
        os.replace(tmp, target)
    except OSError as exc:
        raise SourceUnavailableError(f"Cannot cache {url} in {target.parent}: {exc}") from exc
    logger.info("Downloaded %s (%d bytes)", url, len(body))
    return target
