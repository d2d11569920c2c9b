"""Async GitHub REST client via aiohttp.

One shared session, fixed auth/agent/accept headers and a semaphore that
bounds how many requests are in flight at once. Failures are never retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

import aiohttp

from .config import ACCEPT, API_URL, DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, PER_PAGE
from .models import RepoRef

log = logging.getLogger(__name__)


class GitHubClientError(Exception):
    pass


class RequestFailed(GitHubClientError):
    """Transport failure or non-2xx response."""

    def __init__(self, url: str, status: int | None = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        what = f"HTTP {status}" if status is not None else "request error"
        super().__init__(f"{what} for {url}" + (f": {reason}" if reason else ""))


class MalformedResponse(GitHubClientError):
    pass


def parse_link_header(value: str | None) -> dict[str, str]:
    """Map each rel of a Link header to its URL.

    ``<https://x?page=2>; rel="next", <https://x?page=5>; rel="last"``
    gives ``{"next": "https://x?page=2", "last": "https://x?page=5"}``.
    """
    links: dict[str, str] = {}
    if not value:
        return links
    for segment in value.split(","):
        target, *params = segment.split(";")
        target = target.strip()
        if not (target.startswith("<") and target.endswith(">")):
            continue
        url = target[1:-1].strip()
        if not url:
            continue
        for param in params:
            key, _, rels = param.strip().partition("=")
            if key.strip().lower() != "rel":
                continue
            for rel in rels.strip().strip('"').split():
                links.setdefault(rel.lower(), url)
    return links


@dataclass(frozen=True)
class ApiResponse:
    url: str
    status: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise MalformedResponse(f"Response from {self.url} is not valid JSON: {exc}") from exc

    def json_list(self) -> list[Any]:
        data = self.json()
        if not isinstance(data, list):
            raise MalformedResponse(
                f"Expected a JSON array from {self.url}, got {type(data).__name__}"
            )
        return data

    @property
    def next_url(self) -> str | None:
        return parse_link_header(self.header("Link")).get("next")


class AsyncGitHubClient:
    """Minimal async GitHub REST client."""

    def __init__(
        self,
        token: str,
        user_agent: str = DEFAULT_USER_AGENT,
        base_url: str = API_URL,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.token = token
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")
        self.concurrency = concurrency
        self.timeout = timeout
        self._sem = asyncio.Semaphore(concurrency)
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_settings(cls, settings) -> "AsyncGitHubClient":
        return cls(
            token=settings.token,
            user_agent=settings.user_agent,
            base_url=settings.api_url,
            concurrency=settings.concurrency,
            timeout=settings.timeout,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "User-Agent": self.user_agent,
            "Accept": ACCEPT,
        }

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "AsyncGitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── URLs ─────────────────────────────────────────────────────

    def issues_url(self, repo: RepoRef, page: int = 1, per_page: int = PER_PAGE) -> str:
        query = urlencode({"state": "open", "page": page, "per_page": per_page})
        return f"{self.base_url}/repos/{repo.owner}/{repo.name}/issues?{query}"

    def reactions_url(self, repo: RepoRef, number: int, per_page: int = PER_PAGE) -> str:
        query = urlencode({"per_page": per_page})
        return f"{self.base_url}/repos/{repo.owner}/{repo.name}/issues/{number}/reactions?{query}"

    # ── Requests ─────────────────────────────────────────────────

    async def request(self, method: str, url: str) -> ApiResponse:
        """Send one request; raise RequestFailed on transport error or non-2xx."""
        session = await self._ensure_session()
        async with self._sem:
            log.debug("%s %s", method, url)
            try:
                async with session.request(method, url) as resp:
                    if not 200 <= resp.status < 300:
                        body = await resp.text(errors="replace")
                        raise RequestFailed(url, status=resp.status, reason=_error_message(body))
                    try:
                        body = await resp.text()
                    except (UnicodeDecodeError, LookupError) as exc:
                        raise MalformedResponse(f"Response from {url} could not be decoded: {exc}") from exc
                    return ApiResponse(
                        url=str(resp.url),
                        status=resp.status,
                        body=body,
                        headers=dict(resp.headers),
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                raise RequestFailed(url, reason=str(exc) or type(exc).__name__) from exc

    async def get(self, url: str) -> ApiResponse:
        return await self.request("GET", url)


def _error_message(body: str) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        return body[:200]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return body[:200]
