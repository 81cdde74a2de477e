"""Types for the GitHub sync layer.

Remote state (files, commits, pull requests) is captured in small frozen
records that are re-read on every sync and never cached between calls.
"""

from dataclasses import dataclass
from typing import Optional

from brewpr.formula.types import Artifact

BRANCH_TEMPLATE = "update-{formula_name}-formula"


class RemoteError(Exception):
    """Raised on auth, transport, timeout or unexpected-status failures.

    Fatal for the current sync; never retried.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConflictError(RemoteError):
    """Raised when a file write is rejected because its revision token is stale.

    Another writer updated the file between our read and our write.
    """


class ReferenceExistsError(RemoteError):
    """Raised by create_ref when the branch already exists (HTTP 422)."""


def parse_repo(full_name: str) -> tuple[str, str]:
    """Split ``owner/repo``; raises ValueError on anything else."""
    owner, sep, repo = full_name.strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ValueError(f"Invalid repository {full_name!r}, expected owner/repo")
    return owner, repo


@dataclass(frozen=True)
class SyncTarget:
    """Where an artifact is published: repo, base branch, working branch, path."""

    owner: str
    repo: str
    base_branch: str
    branch: str
    file_path: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def for_artifact(
        cls,
        repo_full_name: str,
        artifact: Artifact,
        base_branch: str = "main",
        formula_dir: str = "Formula",
    ) -> "SyncTarget":
        owner, repo = parse_repo(repo_full_name)

        directory = formula_dir.strip("/")
        file_path = f"{directory}/{artifact.filename}" if directory else artifact.filename

        return cls(
            owner=owner,
            repo=repo,
            base_branch=base_branch,
            branch=BRANCH_TEMPLATE.format(formula_name=artifact.formula_name),
            file_path=file_path,
        )


@dataclass(frozen=True)
class RemoteFileState:
    """A file as seen on one branch. ``sha`` is the revision token for updates."""

    content: str
    sha: Optional[str]
    exists: bool

    @classmethod
    def missing(cls) -> "RemoteFileState":
        return cls(content="", sha=None, exists=False)


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    message: str
    parents: tuple[str, ...] = ()


@dataclass(frozen=True)
class PullRequestRecord:
    number: int
    title: str
    body: str
    head: str
    base: str
    html_url: str = ""


@dataclass
class SyncResult:
    """What a sync attempt did.

    ``pull_request`` is None when the remote file already matched and the
    sync stopped after the compare step.
    """

    branch_created: bool = False
    branch_reset: bool = False
    file_updated: bool = False
    pull_request: Optional[PullRequestRecord] = None
    pull_request_created: bool = False

    @property
    def is_noop(self) -> bool:
        return not self.file_updated
