"""npm registry and homebrew-core lookups.

fetch_latest() resolves the ``latest`` dist-tag and validates that
version's metadata into a ReleaseRecord. published_file_exists() tells
the CLI whether the formula already lives in homebrew-core, which decides
between a ``bump-formula-pr`` hint and a "new formula" commit message.

Not-found is an expected answer for both lookups, not an error.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from brewpr.core.config import Settings
from brewpr.formula.naming import param_case
from brewpr.registry.types import FetchError, ReleaseRecord

logger = logging.getLogger(__name__)


def registry_url(settings: Settings, package_name: str) -> str:
    # Scoped names keep the leading "@" but escape the slash: @scope%2Fname
    return f"{settings.npm_registry_url}/{quote(package_name, safe='@')}"


async def fetch_latest(package_name: str, settings: Settings) -> Optional[ReleaseRecord]:
    """Return the latest published version of *package_name*, or None if unknown."""
    url = registry_url(settings, package_name)
    logger.info("Fetching release info from %s", url)

    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
            response = await client.get(url, headers={"Accept": "application/json"})
    except httpx.HTTPError as exc:
        raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

    if response.status_code == 404:
        logger.info("Package %s not found in registry", package_name)
        return None
    if response.status_code >= 400:
        raise FetchError(
            f"Failed to fetch {url}: HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    try:
        document = response.json()
    except ValueError as exc:
        raise FetchError(f"Registry returned invalid JSON for {package_name}", url=url) from exc

    if not isinstance(document, dict):
        raise FetchError(f"Registry returned an unexpected document for {package_name}", url=url)

    dist_tags = document.get("dist-tags") or {}
    versions = document.get("versions") or {}
    if not isinstance(dist_tags, dict) or not isinstance(versions, dict):
        raise FetchError(
            f"Registry document for {package_name} has malformed dist-tags or versions", url=url
        )

    latest = dist_tags.get("latest")
    if not latest or not isinstance(latest, str):
        raise FetchError(f"Package {package_name} has no 'latest' dist-tag", url=url)

    version_payload = versions.get(latest)
    if not isinstance(version_payload, dict):
        raise FetchError(
            f"Package {package_name} has no metadata for version {latest}", url=url
        )

    return ReleaseRecord.from_registry(version_payload)


def published_formula_path(release: ReleaseRecord) -> str:
    """homebrew-core shards formulae by first letter: Formula/f/foo.rb."""
    formula_name = param_case(release.name)
    return f"Formula/{formula_name[0]}/{formula_name}.rb"


async def published_file_exists(release: ReleaseRecord, settings: Settings) -> bool:
    """Return True when homebrew-core already ships a formula for *release*."""
    path = published_formula_path(release)
    url = f"{settings.github_api_url}/repos/{settings.homebrew_core_repo}/contents/{path}"

    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"

    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
            response = await client.get(url, headers=headers)
    except httpx.HTTPError as exc:
        raise FetchError(f"Failed to check {url}: {exc}", url=url) from exc

    if response.status_code == 404:
        return False
    if response.status_code >= 400:
        raise FetchError(
            f"Failed to check {url}: HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )
    return True
