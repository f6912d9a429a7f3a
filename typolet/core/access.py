"""
Access resolution: does the caller already have a writable copy of the target?
"""

import asyncio
from typing import List, Optional, Sequence

from ..infrastructure.error_handler import ProbeAggregateError
from ..infrastructure.logger import logger
from ..models import (
    DirectAccess,
    ForkAccess,
    NeedsFork,
    ProbeFailed,
    ProbeMatched,
    ProbeNoMatch,
    ProbeResult,
    RepoAccessState,
    RepositoryIdentity,
    RepositoryInfo,
)
from ..services import GitHubAPIService


class AccessResolver:
    """
    Determines whether the caller can push to the target directly, through
    an existing fork, or needs a new fork.
    """

    def __init__(self, github_service: GitHubAPIService):
        self.github_service = github_service

    async def resolve(self, target: RepositoryIdentity) -> RepoAccessState:
        """Compute the access state for ``target`` once."""

        logger.info("Getting a list of all GitHub repos that you have access to...")
        own_repos = await self.github_service.list_user_repositories()

        if self.has_direct_access(target.full_name, own_repos):
            logger.info(f"You already have access to {target}.")
            return DirectAccess()

        logger.info(f"You don't have access to {target}.")
        logger.info(f"Looking for a fork of {target} that you have access to...")
        fork = await self.find_fork_of(target.full_name, own_repos)
        if fork is not None:
            logger.info(f"You have access to {fork}, which is a fork of {target}.")
            return ForkAccess(fork=fork)

        logger.info(f"You don't have access to {target} or any of its forks.")
        return NeedsFork()

    @staticmethod
    def has_direct_access(target: str, own_repos: Sequence[RepositoryInfo]) -> bool:
        """True iff a repository's full name equals ``target`` exactly."""

        return any(repo.full_name == target for repo in own_repos)

    async def find_fork_of(
        self,
        target: str,
        own_repos: Sequence[RepositoryInfo]
    ) -> Optional[RepositoryIdentity]:
        """
        Locate a fork owned by the caller whose parent is ``target``.

        Every fork candidate is probed concurrently. The first match in
        candidate order wins. When nothing matches but some probes failed,
        the search is inconclusive and ``ProbeAggregateError`` is raised.
        """
        candidates = [repo.identity for repo in own_repos if repo.is_fork]
        if not candidates:
            return None

        results: List[ProbeResult] = await asyncio.gather(
            *(self._probe(candidate, target) for candidate in candidates)
        )

        for result in results:
            if isinstance(result, ProbeMatched):
                return result.candidate

        failures = [result for result in results if isinstance(result, ProbeFailed)]
        if failures:
            for failure in failures:
                logger.error(f"Could not look up the parent of {failure.candidate}: {failure.error}")
            raise ProbeAggregateError(
                f"Could not check {len(failures)} of {len(candidates)} forks for parent {target}",
                failures,
            )
        return None

    async def _probe(self, candidate: RepositoryIdentity, target: str) -> ProbeResult:
        try:
            info = await self.github_service.get_repository(candidate.owner, candidate.name)
        except Exception as e:
            return ProbeFailed(candidate=candidate, error=e)

        parent = info.parent_full_name or ""
        logger.debug(f"{candidate} is a fork of {parent or 'nothing'}")
        if parent.lower() == target.lower():
            return ProbeMatched(candidate=candidate)
        return ProbeNoMatch(candidate=candidate)


__all__ = [
    "AccessResolver",
]
