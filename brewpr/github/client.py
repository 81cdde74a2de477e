"""GitHub REST client for the branch/file/pull-request sync.

Uses httpx for async HTTP calls. The bearer token is passed in by the
caller; the client never reads the environment.

Status handling is explicit per operation:
  create_ref   422 -> ReferenceExistsError (branch already there)
  get_content  404 -> RemoteFileState.missing()
  put_content  409 -> ConflictError (stale revision token)
  everything else >= 400, timeouts and transport errors -> RemoteError
"""

import base64
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from brewpr.github.types import (
    CommitRecord,
    ConflictError,
    PullRequestRecord,
    ReferenceExistsError,
    RemoteError,
    RemoteFileState,
)

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"

# Timeout per request (seconds)
DEFAULT_TIMEOUT = 30


class GitHubClient:
    """Thin async wrapper over the GitHub endpoints the sync needs."""

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not token:
            raise ValueError("GitHub token not configured. Set GITHUB_TOKEN.")
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Refs and commits
    # ------------------------------------------------------------------

    async def get_ref(self, owner: str, repo: str, branch: str) -> str:
        """Return the commit SHA a branch points at."""
        path = f"/repos/{owner}/{repo}/git/ref/heads/{branch}"
        response = await self._request("GET", path)
        self._raise_for_status(response, "GET", path)
        return response.json()["object"]["sha"]

    async def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> None:
        path = f"/repos/{owner}/{repo}/git/refs"
        response = await self._request(
            "POST", path, json={"ref": f"refs/heads/{branch}", "sha": sha}
        )
        if response.status_code == 422:
            raise ReferenceExistsError(
                f"Branch {branch} already exists in {owner}/{repo}", status_code=422
            )
        self._raise_for_status(response, "POST", path)

    async def update_ref(
        self,
        owner: str,
        repo: str,
        branch: str,
        sha: str,
        force: bool = False,
    ) -> None:
        path = f"/repos/{owner}/{repo}/git/refs/heads/{branch}"
        response = await self._request("PATCH", path, json={"sha": sha, "force": force})
        self._raise_for_status(response, "PATCH", path)

    async def get_commit(self, owner: str, repo: str, sha: str) -> CommitRecord:
        path = f"/repos/{owner}/{repo}/git/commits/{sha}"
        response = await self._request("GET", path)
        self._raise_for_status(response, "GET", path)
        data = response.json()
        return CommitRecord(
            sha=data["sha"],
            message=data.get("message", ""),
            parents=tuple(parent["sha"] for parent in data.get("parents", [])),
        )

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------

    async def get_content(self, owner: str, repo: str, path: str, ref: str) -> RemoteFileState:
        """GET /repos/{owner}/{repo}/contents/{path}?ref={ref}

        A missing file is a normal outcome and comes back as
        ``RemoteFileState.missing()``.
        """
        url = f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"
        response = await self._request("GET", url, params={"ref": ref})
        if response.status_code == 404:
            return RemoteFileState.missing()
        self._raise_for_status(response, "GET", url)

        data = response.json()
        if not isinstance(data, dict) or "content" not in data:
            raise RemoteError(f"Unexpected response for {path}: content missing")

        raw = base64.b64decode(data["content"].replace("\n", "")).decode("utf-8")
        return RemoteFileState(content=raw, sha=data["sha"], exists=True)

    async def put_content(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> str:
        """PUT /repos/{owner}/{repo}/contents/{path}

        Creates or updates a file and returns the new commit SHA. Pass
        *sha* when updating an existing file so GitHub can reject the
        write if someone else changed it first.
        """
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha is not None:
            payload["sha"] = sha

        url = f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"
        response = await self._request("PUT", url, json=payload)

        # 409: sha does not match the current blob.
        # 422 without a sha: the file was created after we read it.
        if response.status_code == 409 or (response.status_code == 422 and sha is None):
            raise ConflictError(
                f"{path} on {branch} changed since it was read", status_code=response.status_code
            )
        self._raise_for_status(response, "PUT", url)
        return response.json()["commit"]["sha"]

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def list_pulls(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        state: str = "open",
    ) -> list[PullRequestRecord]:
        """List pull requests from ``owner:head`` into *base*."""
        path = f"/repos/{owner}/{repo}/pulls"
        response = await self._request(
            "GET",
            path,
            params={"state": state, "head": f"{owner}:{head}", "base": base},
        )
        self._raise_for_status(response, "GET", path)
        return [_pull_from_json(item) for item in response.json()]

    async def create_pull(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequestRecord:
        path = f"/repos/{owner}/{repo}/pulls"
        response = await self._request(
            "POST",
            path,
            json={"title": title, "body": body, "head": head, "base": base},
        )
        self._raise_for_status(response, "POST", path)
        return _pull_from_json(response.json())

    async def update_pull(
        self,
        owner: str,
        repo: str,
        number: int,
        title: str,
        body: str,
    ) -> PullRequestRecord:
        path = f"/repos/{owner}/{repo}/pulls/{number}"
        response = await self._request("PATCH", path, json={"title": title, "body": body})
        self._raise_for_status(response, "PATCH", path)
        return _pull_from_json(response.json())

    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            async with httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
            ) as client:
                return await client.request(
                    method,
                    path,
                    headers=self._headers(),
                    params=params,
                    json=json,
                )
        except httpx.TimeoutException as exc:
            raise RemoteError(f"{method} {path} timed out after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {path} failed: {exc}") from exc

    def _raise_for_status(self, response: httpx.Response, method: str, path: str) -> None:
        if response.status_code < 400:
            return
        detail = _error_message(response)
        raise RemoteError(
            f"{method} {path} returned HTTP {response.status_code}: {detail}",
            status_code=response.status_code,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or "no details"
    if isinstance(data, dict):
        return str(data.get("message", "no details"))
    return "no details"


def _pull_from_json(data: dict) -> PullRequestRecord:
    return PullRequestRecord(
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        head=(data.get("head") or {}).get("ref", ""),
        base=(data.get("base") or {}).get("ref", ""),
        html_url=data.get("html_url", ""),
    )
