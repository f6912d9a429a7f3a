"""
Fork creation and its compensating deletion.
"""

from ..infrastructure.logger import logger
from ..models import RepositoryIdentity
from ..services import GitHubAPIService


class ForkProvisioner:
    """Creates forks of the target and deletes them again when a run is abandoned."""

    def __init__(self, github_service: GitHubAPIService):
        self.github_service = github_service

    async def fork(self, target: RepositoryIdentity) -> RepositoryIdentity:
        """Fork ``target`` under the caller's account. Failures are not retried."""

        logger.info(f"Forking {target} using your GitHub credentials...")
        fork = await self.github_service.fork_repository(target.owner, target.name)
        logger.info(f"Forked {target} to {fork.full_name}.")
        return fork.identity

    async def discard(self, fork: RepositoryIdentity) -> None:
        logger.warning(f"Deleting {fork}...")
        await self.github_service.delete_repository(fork.owner, fork.name)


__all__ = [
    "ForkProvisioner",
]
