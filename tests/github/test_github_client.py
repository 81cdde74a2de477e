"""Tests for the GitHub REST client.

Requests are mocked at the httpx.AsyncClient level so tests run without
real network calls.
"""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from brewpr.github.client import GitHubClient
from brewpr.github.types import (
    ConflictError,
    ReferenceExistsError,
    RemoteError,
)


def _make_response(status_code: int, json_data=None, text: str = "") -> MagicMock:
    """Build a minimal mock httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.text = text
    return resp


def _patch_client(MockClient, request):
    MockClient.return_value.__aenter__ = AsyncMock(return_value=MockClient.return_value)
    MockClient.return_value.__aexit__ = AsyncMock(return_value=False)
    MockClient.return_value.request = request


def _client() -> GitHubClient:
    return GitHubClient("tok")


class TestConstruction:
    def test_empty_token_rejected(self):
        with pytest.raises(ValueError, match="GITHUB_TOKEN"):
            GitHubClient("")

    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_base_url(self):
        mock_resp = _make_response(200, {"object": {"sha": "abc"}})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            await GitHubClient("tok", api_url="https://ghe.example.com/api/v3/").get_ref(
                "o", "r", "main"
            )

            assert MockClient.call_args.kwargs["base_url"] == "https://ghe.example.com/api/v3"
            headers = MockClient.return_value.request.call_args.kwargs["headers"]
            assert headers["Authorization"] == "Bearer tok"


class TestRefs:
    @pytest.mark.asyncio
    async def test_get_ref_returns_sha(self):
        mock_resp = _make_response(200, {"object": {"sha": "abc123"}})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            sha = await _client().get_ref("owner", "repo", "main")

            args = MockClient.return_value.request.call_args.args
            assert args == ("GET", "/repos/owner/repo/git/ref/heads/main")

        assert sha == "abc123"

    @pytest.mark.asyncio
    async def test_create_ref_payload(self):
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=_make_response(201, {})))
            await _client().create_ref("owner", "repo", "update-tool-formula", "abc")

            call = MockClient.return_value.request.call_args
            assert call.args == ("POST", "/repos/owner/repo/git/refs")
            assert call.kwargs["json"] == {"ref": "refs/heads/update-tool-formula", "sha": "abc"}

    @pytest.mark.asyncio
    async def test_create_ref_existing_branch(self):
        mock_resp = _make_response(422, {"message": "Reference already exists"})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(ReferenceExistsError):
                await _client().create_ref("owner", "repo", "b", "abc")

    @pytest.mark.asyncio
    async def test_create_ref_other_failure_is_remote_error(self):
        mock_resp = _make_response(403, {"message": "Resource not accessible"})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(RemoteError) as exc_info:
                await _client().create_ref("owner", "repo", "b", "abc")

        assert not isinstance(exc_info.value, ReferenceExistsError)
        assert exc_info.value.status_code == 403
        assert "Resource not accessible" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_update_ref_force(self):
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=_make_response(200, {})))
            await _client().update_ref("owner", "repo", "b", "def", force=True)

            call = MockClient.return_value.request.call_args
            assert call.args == ("PATCH", "/repos/owner/repo/git/refs/heads/b")
            assert call.kwargs["json"] == {"sha": "def", "force": True}

    @pytest.mark.asyncio
    async def test_get_commit(self):
        mock_resp = _make_response(
            200, {"sha": "c2", "message": "update Formula/tool.rb", "parents": [{"sha": "c1"}]}
        )
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            commit = await _client().get_commit("owner", "repo", "c2")

        assert commit.sha == "c2"
        assert commit.message == "update Formula/tool.rb"
        assert commit.parents == ("c1",)


class TestGetContent:
    @pytest.mark.asyncio
    async def test_returns_decoded_content_and_sha(self):
        raw = base64.b64encode(b"class Tool < Formula\nend\n").decode()
        # The API returns base64 split across lines
        wrapped = "\n".join(raw[i:i + 10] for i in range(0, len(raw), 10))
        mock_resp = _make_response(200, {"content": wrapped, "sha": "blob1"})

        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            state = await _client().get_content("owner", "repo", "Formula/tool.rb", "b")

            call = MockClient.return_value.request.call_args
            assert call.args == ("GET", "/repos/owner/repo/contents/Formula/tool.rb")
            assert call.kwargs["params"] == {"ref": "b"}

        assert state.exists is True
        assert state.sha == "blob1"
        assert state.content == "class Tool < Formula\nend\n"

    @pytest.mark.asyncio
    async def test_missing_file_for_404(self):
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=_make_response(404, {})))
            state = await _client().get_content("owner", "repo", "Formula/tool.rb", "b")

        assert state.exists is False
        assert state.sha is None
        assert state.content == ""

    @pytest.mark.asyncio
    async def test_directory_listing_is_remote_error(self):
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=_make_response(200, [])))
            with pytest.raises(RemoteError, match="content missing"):
                await _client().get_content("owner", "repo", "Formula", "b")

    @pytest.mark.asyncio
    async def test_unauthorized_is_remote_error(self):
        mock_resp = _make_response(401, {"message": "Bad credentials"})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(RemoteError, match="Bad credentials"):
                await _client().get_content("owner", "repo", "Formula/tool.rb", "b")


class TestPutContent:
    @pytest.mark.asyncio
    async def test_create_new_file_omits_sha(self):
        mock_resp = _make_response(201, {"commit": {"sha": "newcommit"}})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            sha = await _client().put_content(
                "owner", "repo", "Formula/tool.rb", "content here", "update Formula/tool.rb", "b",
            )

            call = MockClient.return_value.request.call_args
            assert call.args == ("PUT", "/repos/owner/repo/contents/Formula/tool.rb")
            payload = call.kwargs["json"]
            assert payload["branch"] == "b"
            assert payload["message"] == "update Formula/tool.rb"
            assert base64.b64decode(payload["content"]) == b"content here"
            assert "sha" not in payload

        assert sha == "newcommit"

    @pytest.mark.asyncio
    async def test_update_existing_file_passes_sha(self):
        mock_resp = _make_response(200, {"commit": {"sha": "c"}})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            await _client().put_content(
                "owner", "repo", "Formula/tool.rb", "new", "msg", "b", sha="blob1",
            )

            payload = MockClient.return_value.request.call_args.kwargs["json"]
            assert payload["sha"] == "blob1"

    @pytest.mark.asyncio
    async def test_stale_sha_is_conflict(self):
        mock_resp = _make_response(409, {"message": "does not match"})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(ConflictError) as exc_info:
                await _client().put_content(
                    "owner", "repo", "Formula/tool.rb", "new", "msg", "b", sha="old",
                )

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_file_created_concurrently_is_conflict(self):
        mock_resp = _make_response(422, {"message": "\"sha\" wasn't supplied."})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(ConflictError):
                await _client().put_content("owner", "repo", "Formula/tool.rb", "new", "msg", "b")

    @pytest.mark.asyncio
    async def test_unprocessable_with_sha_is_remote_error(self):
        mock_resp = _make_response(422, {"message": "Invalid request"})
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(RemoteError) as exc_info:
                await _client().put_content(
                    "owner", "repo", "Formula/tool.rb", "new", "msg", "b", sha="s",
                )

        assert not isinstance(exc_info.value, ConflictError)


class TestPulls:
    @staticmethod
    def _pull_json(number: int = 7) -> dict:
        return {
            "number": number,
            "title": "publish `tool@1.0.0`",
            "body": "Publish",
            "head": {"ref": "update-tool-formula"},
            "base": {"ref": "main"},
            "html_url": f"https://github.com/owner/repo/pull/{number}",
        }

    @pytest.mark.asyncio
    async def test_list_pulls_filters_by_owner_head_and_base(self):
        mock_resp = _make_response(200, [self._pull_json()])
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            pulls = await _client().list_pulls("owner", "repo", head="update-tool-formula", base="main")

            params = MockClient.return_value.request.call_args.kwargs["params"]
            assert params == {"state": "open", "head": "owner:update-tool-formula", "base": "main"}

        assert len(pulls) == 1
        assert pulls[0].number == 7
        assert pulls[0].head == "update-tool-formula"
        assert pulls[0].base == "main"

    @pytest.mark.asyncio
    async def test_create_pull(self):
        mock_resp = _make_response(201, self._pull_json(8))
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            pull = await _client().create_pull(
                "owner", "repo", title="t", body="b", head="update-tool-formula", base="main",
            )

            payload = MockClient.return_value.request.call_args.kwargs["json"]
            assert payload == {"title": "t", "body": "b", "head": "update-tool-formula", "base": "main"}

        assert pull.number == 8
        assert pull.html_url == "https://github.com/owner/repo/pull/8"

    @pytest.mark.asyncio
    async def test_update_pull(self):
        mock_resp = _make_response(200, self._pull_json(7))
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            await _client().update_pull("owner", "repo", 7, title="t2", body="b2")

            call = MockClient.return_value.request.call_args
            assert call.args == ("PATCH", "/repos/owner/repo/pulls/7")
            assert call.kwargs["json"] == {"title": "t2", "body": "b2"}


class TestTransportErrors:
    @pytest.mark.asyncio
    async def test_timeout_is_remote_error(self):
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(side_effect=httpx.ReadTimeout("slow")))
            with pytest.raises(RemoteError, match="timed out"):
                await _client().get_ref("owner", "repo", "main")

    @pytest.mark.asyncio
    async def test_connection_error_is_remote_error(self):
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(side_effect=httpx.ConnectError("refused")))
            with pytest.raises(RemoteError, match="refused"):
                await _client().list_pulls("owner", "repo", head="b", base="main")

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        mock_resp = _make_response(502, text="Bad Gateway")
        mock_resp.json.side_effect = ValueError("not json")
        with patch("httpx.AsyncClient") as MockClient:
            _patch_client(MockClient, AsyncMock(return_value=mock_resp))
            with pytest.raises(RemoteError, match="Bad Gateway") as exc_info:
                await _client().get_ref("owner", "repo", "main")

        assert exc_info.value.status_code == 502
