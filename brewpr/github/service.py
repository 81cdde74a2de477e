"""Branch/file/pull-request sync for a generated formula.

Orchestrates one sync attempt:
branch ensure -> file compare -> (no-op | file write) -> PR upsert.

Every step re-reads remote state right before acting; nothing is cached
between calls, so running the same sync twice is safe. The only
concurrency control is GitHub's revision token on file writes: a second
writer racing us fails with ConflictError instead of clobbering data.

Two remote outcomes are expected rather than errors:
  - the working branch already exists when we try to create it
  - the formula file does not exist yet on the working branch
"""

import logging

from brewpr.formula.types import Artifact
from brewpr.github.client import GitHubClient
from brewpr.github.types import (
    PullRequestRecord,
    ReferenceExistsError,
    SyncResult,
    SyncTarget,
)

logger = logging.getLogger(__name__)

# How many of our own stacked commits a working branch may carry on top of
# the base commit and still count as current.
MAX_SYNC_COMMITS = 5


def sync_commit_message(target: SyncTarget) -> str:
    return f"update {target.file_path}"


class RemoteSync:
    """Publishes an Artifact to a SyncTarget as an open pull request."""

    def __init__(self, client: GitHubClient):
        self._client = client

    async def sync(self, target: SyncTarget, artifact: Artifact) -> SyncResult:
        """Bring the remote working branch and pull request in line with *artifact*.

        Raises RemoteError (or ConflictError on a stale revision token).
        Neither is retried.
        """
        result = SyncResult()

        await self.ensure_branch(target, result)

        remote_file = await self._client.get_content(
            target.owner, target.repo, target.file_path, target.branch
        )

        # Whitespace-trimmed comparison: a change that only touches leading or
        # trailing whitespace is treated as "unchanged".
        if remote_file.content.strip() == artifact.content.strip():
            logger.info(
                "%s on %s already up to date, nothing to do",
                target.file_path, target.branch,
            )
            return result

        await self._client.put_content(
            target.owner,
            target.repo,
            target.file_path,
            artifact.content,
            sync_commit_message(target),
            target.branch,
            sha=remote_file.sha if remote_file.exists else None,
        )
        result.file_updated = True
        logger.info(
            "%s %s on %s",
            "Updated" if remote_file.exists else "Created",
            target.file_path,
            target.branch,
        )

        result.pull_request, result.pull_request_created = await self.upsert_pull_request(
            target, artifact
        )
        return result

    async def ensure_branch(self, target: SyncTarget, result: SyncResult) -> None:
        """Make the working branch start from the base branch's current commit.

        Creation is attempted first. If the branch already exists it is left
        alone when it is exactly the base commit plus our own sync commits;
        otherwise it is force-reset onto the base commit, discarding any
        divergent history.
        """
        owner, repo = target.owner, target.repo
        base_sha = await self._client.get_ref(owner, repo, target.base_branch)

        try:
            await self._client.create_ref(owner, repo, target.branch, base_sha)
        except ReferenceExistsError:
            logger.info("Branch %s already exists, checking it is current", target.branch)
        else:
            logger.info("Created branch %s at %s", target.branch, base_sha[:8])
            result.branch_created = True
            return

        head_sha = await self._client.get_ref(owner, repo, target.branch)
        if await self._is_current(target, head_sha, base_sha):
            logger.info("Branch %s already based on %s", target.branch, base_sha[:8])
            return

        await self._client.update_ref(owner, repo, target.branch, base_sha, force=True)
        result.branch_reset = True
        logger.info("Reset branch %s to %s", target.branch, base_sha[:8])

    async def _is_current(self, target: SyncTarget, head_sha: str, base_sha: str) -> bool:
        """True when head is base_sha, or only our own commits stacked on it."""
        message = sync_commit_message(target)
        sha = head_sha
        for _ in range(MAX_SYNC_COMMITS + 1):
            if sha == base_sha:
                return True
            commit = await self._client.get_commit(target.owner, target.repo, sha)
            if commit.message != message or len(commit.parents) != 1:
                return False
            sha = commit.parents[0]
        return False

    async def upsert_pull_request(
        self, target: SyncTarget, artifact: Artifact
    ) -> tuple[PullRequestRecord, bool]:
        """Update the open PR for (branch, base) or create one.

        Returns the PR and whether it was newly created. The PR list is
        queried on every call.
        """
        owner, repo = target.owner, target.repo
        pulls = await self._client.list_pulls(
            owner, repo, head=target.branch, base=target.base_branch
        )

        if pulls:
            existing = pulls[0]
            logger.info("Pull request #%d already exists. Updating...", existing.number)
            pull = await self._client.update_pull(
                owner, repo, existing.number, title=artifact.title, body=artifact.body
            )
            return pull, False

        logger.info("Creating new pull request for %s", target.branch)
        pull = await self._client.create_pull(
            owner,
            repo,
            title=artifact.title,
            body=artifact.body,
            head=target.branch,
            base=target.base_branch,
        )
        return pull, True
