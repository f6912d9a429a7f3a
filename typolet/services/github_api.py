"""
GitHub host access for Typolet.

Reads (paginated listings, repository lookups) go through an
``httpx.AsyncClient`` so they can run concurrently; mutations (fork, delete,
pull request) go through PyGithub on a worker thread.
"""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from github import Auth, Github

from ..infrastructure.error_handler import handle_api_error
from ..infrastructure.logger import logger
from ..infrastructure.rate_limiter import RateLimiter
from ..models import PullRequestInfo, RepositoryInfo
from ..models.config import DEFAULT_API_URL


class GitHubAPIService:
    """Thin async facade over the GitHub REST API."""

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        auth_token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        per_page: int = 100,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        github: Optional[Github] = None
    ):
        self.rate_limiter = rate_limiter or RateLimiter()
        self.auth_token = auth_token
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self._client = client or httpx.AsyncClient(
            base_url=self.api_url,
            headers=self._headers(),
            timeout=timeout,
        )
        self._github = github

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.auth_token:
            headers["Authorization"] = f"token {self.auth_token}"
        return headers

    @property
    def github(self) -> Github:
        """PyGithub client, built on first use."""

        if self._github is None:
            auth = Auth.Token(self.auth_token) if self.auth_token else None
            self._github = Github(auth=auth, base_url=self.api_url)
        return self._github

    async def aclose(self) -> None:
        await self._client.aclose()
        if self._github is not None:
            self._github.close()

    async def __aenter__(self) -> "GitHubAPIService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    ####
    ##      REST READS
    #####
    @handle_api_error
    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        await self.rate_limiter.acquire()
        logger.debug(f"{method} {url} {params or ''}")
        response = await self._client.request(method, url, params=params)
        await self.rate_limiter.update_rate_limit_info(response.headers)
        response.raise_for_status()
        return response

    async def iter_pages(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None
    ) -> AsyncIterator[List[Dict[str, Any]]]:
        """
        Yield each page of a paginated listing, in order.

        Every request after the first follows the ``next`` link of the
        previous response, so pages are fetched strictly one after another.
        The iterator stops once a response carries no ``next`` link.
        """
        url: Optional[str] = path
        query: Optional[Dict[str, Any]] = {**(params or {}), "per_page": self.per_page}

        while url:
            response = await self._request("GET", url, params=query)
            yield response.json()
            url = response.links.get("next", {}).get("url")
            # The next link already carries the full query string
            query = None

    async def fetch_all_pages(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Concatenate every page of a listing; any failed page aborts the whole fetch."""

        return [item async for page in self.iter_pages(path, params) for item in page]

    async def list_user_repositories(self) -> List[RepositoryInfo]:
        """Every repository the authenticated user can access."""

        items = await self.fetch_all_pages("/user/repos", {"type": "all"})
        return [RepositoryInfo.from_api(item) for item in items]

    async def get_repository(self, owner: str, name: str) -> RepositoryInfo:
        response = await self._request("GET", f"/repos/{owner}/{name}")
        return RepositoryInfo.from_api(response.json())

    ####
    ##      MUTATIONS
    #####
    @handle_api_error
    async def fork_repository(self, owner: str, name: str) -> RepositoryInfo:
        def _fork() -> Dict[str, Any]:
            return self.github.get_repo(f"{owner}/{name}").create_fork().raw_data

        return RepositoryInfo.from_api(await asyncio.to_thread(_fork))

    @handle_api_error
    async def delete_repository(self, owner: str, name: str) -> None:
        def _delete() -> None:
            self.github.get_repo(f"{owner}/{name}").delete()

        await asyncio.to_thread(_delete)

    @handle_api_error
    async def create_pull_request(
        self,
        owner: str,
        name: str,
        head: str,
        base: str,
        title: str,
        body: str
    ) -> PullRequestInfo:
        def _create() -> PullRequestInfo:
            pull = self.github.get_repo(f"{owner}/{name}").create_pull(
                title=title, body=body, head=head, base=base
            )
            return PullRequestInfo(number=pull.number, html_url=pull.html_url)

        return await asyncio.to_thread(_create)


__all__ = [
    "GitHubAPIService",
]
