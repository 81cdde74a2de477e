"""GitHub sync for generated formulae.

Public API:
    GitHubClient(token, api_url, timeout)
    RemoteSync(client).sync(target, artifact) -> SyncResult
    SyncTarget.for_artifact(repo_full_name, artifact, base_branch, formula_dir)
"""

from brewpr.github.client import GitHubClient
from brewpr.github.service import RemoteSync
from brewpr.github.types import (
    CommitRecord,
    ConflictError,
    PullRequestRecord,
    ReferenceExistsError,
    RemoteError,
    RemoteFileState,
    SyncResult,
    SyncTarget,
    parse_repo,
)

__all__ = [
    "GitHubClient",
    "RemoteSync",
    "CommitRecord",
    "ConflictError",
    "PullRequestRecord",
    "ReferenceExistsError",
    "RemoteError",
    "RemoteFileState",
    "SyncResult",
    "SyncTarget",
    "parse_repo",
]
