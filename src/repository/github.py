"""GitHub search and fork client.

Requests run on an asyncio event loop through a shared ``aiohttp`` session;
the ``search_hub``/``fork_hub`` wrappers block on the result. ``None`` means the
request failed, while an empty list means the search found nothing.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from constants import Constants, Distribution

logger = logging.getLogger(__name__)

_GITHUB_REMOTE = re.compile(
    r'^(?:https?://(?:[^@/]+@)?github\.com/|git@github\.com:|ssh://git@github\.com/)'
    r'(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$',
    re.IGNORECASE,
)


@dataclass(frozen=True)
class HubRepo:
    """A repository as reported by the GitHub API."""
    name: str
    full_name: str
    owner: str
    description: str
    web: str
    git: str
    stars: int = 0
    fork: bool = False

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "HubRepo":
        owner = data.get("owner") or {}
        return cls(
            name=str(data.get("name", "")),
            full_name=str(data.get("full_name", "")),
            owner=str(owner.get("login", "")) if isinstance(owner, dict) else "",
            description=str(data.get("description") or ""),
            web=str(data.get("html_url", "")),
            git=str(data.get("clone_url", "")),
            stars=int(data.get("stargazers_count") or 0),
            fork=bool(data.get("fork", False)),
        )

    def render_shortly(self) -> str:
        lines = [f"{self.full_name}  ★{self.stars}", f"  {self.web}"]
        if self.description:
            lines.append(f"  {self.description}")
        return "\n".join(lines)


class HubClient:
    """Minimal asynchronous GitHub REST client."""

    def __init__(self, token: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: int = Constants.REQUEST_TIMEOUT):
        """Initialize the client.

        Args:
            token: API token; defaults to Constants.GITHUB_TOKEN.
            base_url: API root; defaults to Constants.GITHUB_API_BASE.
            timeout: Request timeout in seconds.
        """
        self._token = token if token is not None else Constants.GITHUB_TOKEN
        self._base = (base_url or Constants.GITHUB_API_BASE).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HubClient":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "gitroll",
        }
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    async def _request(self, method: str, path: str,
                       params: Optional[Dict[str, Any]] = None) -> Tuple[int, Optional[Any]]:
        """Issue a request and return (status, parsed json); status 0 on transport errors."""
        if self._session is None:
            await self.start()
        url = f"{self._base}{path}"
        with Timer() as t:
            try:
                async with self._session.request(
                    method, url, params=params, headers=self._headers()
                ) as response:
                    status = response.status
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError:
                        payload = None
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.error("request to %s failed: %s", safe_url(url), exc)
                return 0, None
        if is_debug_enabled(logger):
            logger.debug(
                "github request",
                extra=extra_context(
                    event="http_request",
                    component="github",
                    action=method.lower(),
                    target=safe_url(url),
                    outcome="success" if 200 <= status < 300 else "failure",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                )
            )
        return status, payload

    async def search(self, terms: Sequence[str]) -> Optional[List[HubRepo]]:
        """Search repositories, best match first."""
        query = " ".join(terms).strip()
        if not query:
            return []
        if Constants.HUB_SEARCH_LANGUAGE:
            query = f"{query} language:{Constants.HUB_SEARCH_LANGUAGE}"
        status, payload = await self._request(
            "GET",
            "/search/repositories",
            params={"q": query, "per_page": Constants.HUB_SEARCH_PER_PAGE},
        )
        if status != 200 or not isinstance(payload, dict):
            logger.error("github search for `%s` failed with status %s", query, status)
            return None
        items = payload.get("items")
        if not isinstance(items, list):
            return None
        return [HubRepo.from_json(item) for item in items if isinstance(item, dict)]

    async def fork(self, owner: str, repo: str) -> Optional[HubRepo]:
        """Fork owner/repo into the authenticated account."""
        if not self._token:
            logger.error("forking requires a token in %s", Constants.ENV_GITHUB_TOKEN)
            return None
        status, payload = await self._request("POST", f"/repos/{owner}/{repo}/forks")
        if status not in (200, 202) or not isinstance(payload, dict):
            logger.error("unable to fork %s/%s; status %s", owner, repo, status)
            return None
        return HubRepo.from_json(payload)


async def _search(terms: Sequence[str]) -> Optional[List[HubRepo]]:
    async with HubClient() as client:
        return await client.search(terms)


async def _fork(owner: str, repo: str) -> Optional[HubRepo]:
    async with HubClient() as client:
        return await client.fork(owner, repo)


def search_hub(terms: Sequence[str]) -> Optional[List[HubRepo]]:
    return asyncio.run(_search(terms))


def fork_hub(owner: str, repo: str) -> Optional[HubRepo]:
    return asyncio.run(_fork(owner, repo))


def parse_remote(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """(owner, repo) for a GitHub remote URL, else None."""
    if not url:
        return None
    m = _GITHUB_REMOTE.match(url.strip())
    if not m:
        return None
    return m.group("owner"), m.group("repo")


def fork_target(project, git) -> Tuple[Optional[Tuple[str, str]], str]:
    """Work out what to fork for a project; returns ((owner, repo) | None, reason)."""
    if project.dist != Distribution.GIT:
        return None, f"{project.name} is not a git checkout"
    url = git.remote_url(project.repo)
    if url is None:
        return None, f"{project.name} has no origin remote"
    target = parse_remote(url)
    if target is None:
        return None, f"{safe_url(url)} is not a github repository"
    return target, ""
