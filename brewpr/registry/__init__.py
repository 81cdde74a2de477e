"""npm registry access: release metadata and tarball hashing.

Public API:
    fetch_latest(package_name, settings) -> ReleaseRecord | None
    published_file_exists(release, settings) -> bool
    hash_tarball(url, timeout) -> str
"""

from brewpr.registry.client import fetch_latest, published_file_exists
from brewpr.registry.hasher import hash_tarball
from brewpr.registry.types import FetchError, ReleaseRecord

__all__ = [
    "fetch_latest",
    "published_file_exists",
    "hash_tarball",
    "FetchError",
    "ReleaseRecord",
]
