"""Tests for the aiohttp client against a local aiohttp server."""

from __future__ import annotations

import asyncio
import contextlib

import pytest
from aiohttp import web
from aiohttp import test_utils

from issue_upvotes.async_client import (
    ApiResponse,
    AsyncGitHubClient,
    MalformedResponse,
    RequestFailed,
    parse_link_header,
)
from issue_upvotes.models import RepoRef


@contextlib.asynccontextmanager
async def serve(routes: list[web.RouteDef]):
    app = web.Application()
    app.add_routes(routes)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield f"http://{server.host}:{server.port}"
    finally:
        await server.close()


class TestParseLinkHeader:
    def test_github_style_header(self):
        header = (
            '<https://api.github.com/repositories/1/issues?page=2>; rel="next", '
            '<https://api.github.com/repositories/1/issues?page=5>; rel="last"'
        )
        assert parse_link_header(header) == {
            "next": "https://api.github.com/repositories/1/issues?page=2",
            "last": "https://api.github.com/repositories/1/issues?page=5",
        }

    def test_last_page_has_no_next(self):
        header = '<https://x/issues?page=1>; rel="first", <https://x/issues?page=4>; rel="prev"'
        assert "next" not in parse_link_header(header)

    def test_multiple_rel_values_and_spacing(self):
        header = '  <https://x/?page=3> ;  rel="next last"  '
        links = parse_link_header(header)
        assert links["next"] == links["last"] == "https://x/?page=3"

    def test_empty_and_garbage(self):
        assert parse_link_header(None) == {}
        assert parse_link_header("") == {}
        assert parse_link_header('rel="next"') == {}
        assert parse_link_header('<>; rel="next"') == {}


class TestApiResponse:
    def test_header_lookup_is_case_insensitive(self):
        resp = ApiResponse(url="u", status=200, body="[]", headers={"link": '<https://n>; rel="next"'})
        assert resp.next_url == "https://n"

    def test_invalid_json(self):
        with pytest.raises(MalformedResponse):
            ApiResponse(url="u", status=200, body="{not json").json()

    def test_json_list_rejects_object(self):
        with pytest.raises(MalformedResponse):
            ApiResponse(url="u", status=200, body='{"a": 1}').json_list()


class TestAsyncGitHubClient:
    def test_urls(self):
        client = AsyncGitHubClient("t", base_url="https://ghe.example.com/api/v3/")
        repo = RepoRef("octo", "widgets")
        assert client.issues_url(repo) == (
            "https://ghe.example.com/api/v3/repos/octo/widgets/issues?state=open&page=1&per_page=100"
        )
        assert client.reactions_url(repo, 12) == (
            "https://ghe.example.com/api/v3/repos/octo/widgets/issues/12/reactions?per_page=100"
        )

    @pytest.mark.asyncio
    async def test_sends_fixed_headers_and_reads_link(self):
        seen: dict[str, str] = {}

        async def handler(request: web.Request) -> web.Response:
            seen.update((k.lower(), v) for k, v in request.headers.items())
            return web.json_response(
                [{"number": 1}], headers={"Link": '<http://next.example/issues?page=2>; rel="next"'}
            )

        async with serve([web.get("/repos/octo/widgets/issues", handler)]) as base:
            async with AsyncGitHubClient("s3cret", user_agent="upvote-test", base_url=base) as client:
                resp = await client.get(client.issues_url(RepoRef("octo", "widgets")))

        assert seen["authorization"] == "Bearer s3cret"
        assert seen["user-agent"] == "upvote-test"
        assert seen["accept"] == "application/vnd.github+json"
        assert resp.status == 200
        assert resp.json_list() == [{"number": 1}]
        assert resp.next_url == "http://next.example/issues?page=2"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_request_failed(self):
        async def handler(request: web.Request) -> web.Response:
            return web.json_response({"message": "Bad credentials"}, status=401)

        async with serve([web.get("/repos/o/r/issues", handler)]) as base:
            async with AsyncGitHubClient("bad", base_url=base) as client:
                with pytest.raises(RequestFailed) as excinfo:
                    await client.get(f"{base}/repos/o/r/issues")

        assert excinfo.value.status == 401
        assert excinfo.value.reason == "Bad credentials"

    @pytest.mark.asyncio
    async def test_undecodable_body_is_malformed(self):
        async def handler(request: web.Request) -> web.Response:
            return web.Response(
                body=b'[{"number": 1, "title": "\xff\xfe"}]',
                content_type="application/json",
                charset="utf-8",
            )

        async with serve([web.get("/repos/o/r/issues", handler)]) as base:
            async with AsyncGitHubClient("t", base_url=base) as client:
                with pytest.raises(MalformedResponse, match="could not be decoded"):
                    await client.get(f"{base}/repos/o/r/issues")

    @pytest.mark.asyncio
    async def test_undecodable_error_body_still_request_failed(self):
        async def handler(request: web.Request) -> web.Response:
            return web.Response(body=b"\xff\xfe oops", status=502, content_type="text/plain", charset="utf-8")

        async with serve([web.get("/repos/o/r/issues", handler)]) as base:
            async with AsyncGitHubClient("t", base_url=base) as client:
                with pytest.raises(RequestFailed) as excinfo:
                    await client.get(f"{base}/repos/o/r/issues")

        assert excinfo.value.status == 502

    @pytest.mark.asyncio
    async def test_connection_error_raises_request_failed(self):
        async with serve([]) as base:
            pass
        # Server is gone; nothing listens on that port any more.
        async with AsyncGitHubClient("t", base_url=base) as client:
            with pytest.raises(RequestFailed) as excinfo:
                await client.get(f"{base}/repos/o/r/issues")
        assert excinfo.value.status is None

    @pytest.mark.asyncio
    async def test_timeout_raises_request_failed(self):
        async def handler(request: web.Request) -> web.Response:
            await asyncio.sleep(1)
            return web.json_response([])

        async with serve([web.get("/slow", handler)]) as base:
            async with AsyncGitHubClient("t", base_url=base, timeout=0.1) as client:
                with pytest.raises(RequestFailed):
                    await client.get(f"{base}/slow")

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        in_flight = 0
        peak = 0

        async def handler(request: web.Request) -> web.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1
            return web.json_response([])

        async with serve([web.get("/r/{n}", handler)]) as base:
            async with AsyncGitHubClient("t", base_url=base, concurrency=3) as client:
                await asyncio.gather(*(client.get(f"{base}/r/{n}") for n in range(10)))

        assert peak == 3
