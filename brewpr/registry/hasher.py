"""Tarball digest for the formula's ``sha256`` field.

The registry only publishes sha512 integrity strings, while Homebrew wants
a sha256 of the exact bytes ``url`` serves. The tarball is downloaded into
memory and hashed fresh; nothing is verified against registry values.
"""

import hashlib
import logging

import httpx

from brewpr.registry.types import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


async def hash_tarball(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Download *url* and return its hex-encoded SHA-256 digest.

    Raises FetchError on a non-2xx response or any transport failure.
    There is no retry.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        raise FetchError(f"Failed to download {url}: {exc}", url=url) from exc

    if not 200 <= response.status_code < 300:
        raise FetchError(
            f"Failed to download {url}: HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    digest = hashlib.sha256(response.content).hexdigest()
    logger.debug("sha256 %s for %s (%d bytes)", digest, url, len(response.content))
    return digest
