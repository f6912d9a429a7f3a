"""
Brings a local working copy into a known state relative to upstream.
"""

import asyncio
from pathlib import Path
from typing import Optional

from git import Repo

from ..infrastructure.error_handler import TransientNetworkError
from ..infrastructure.logger import logger
from ..infrastructure.retry_manager import RetryManager
from ..models import CloneWorkspace, RepositoryIdentity, SyncResult, clone_path
from ..services import GitService


UPSTREAM_REMOTE = "parent"


class RepositorySynchronizer:
    """
    Reconciles the working copy of a repository with the upstream base
    branch and lists the files of the merged commit.

    Steps run strictly one after another; any failure aborts the whole
    synchronization.
    """

    def __init__(
        self,
        git_service: GitService,
        workspace_root: Path,
        retry_manager: Optional[RetryManager] = None
    ):
        self.git_service = git_service
        self.workspace_root = Path(workspace_root)
        self.retry_manager = retry_manager or RetryManager()

    def prepare_workspace(self, identity: RepositoryIdentity, is_new_fork: bool) -> CloneWorkspace:
        path = clone_path(self.workspace_root, identity)
        if is_new_fork:
            logger.info(f"Making sure the temporary directory for {identity} doesn't already exist...")
            self.git_service.remove(path)
            return CloneWorkspace(path=path, exists=False)

        logger.info(f"Checking if {identity} has already been cloned...")
        return CloneWorkspace(path=path, exists=self.git_service.is_repository(path))

    async def _open_or_clone(self, identity: RepositoryIdentity, workspace: CloneWorkspace) -> Repo:
        if workspace.exists:
            return await asyncio.to_thread(self.git_service.open, workspace.path)

        url = self.git_service.remote_url(identity)
        logger.info(f"Cloning {url} into {workspace.path}...")
        return await self.retry_manager.execute(
            lambda: asyncio.to_thread(self.git_service.clone, url, workspace.path),
            exceptions=(TransientNetworkError,),
        )

    async def synchronize(
        self,
        identity: RepositoryIdentity,
        upstream: RepositoryIdentity,
        base_branch: str,
        is_new_fork: bool = False
    ) -> SyncResult:
        """
        Clone or reuse the working copy of ``identity``, merge
        ``upstream``'s ``base_branch`` into it and hard-reset to the result.

        Returns:
            SyncResult with the merged commit and its files sorted by path
        """
        workspace = self.prepare_workspace(identity, is_new_fork)
        repo = await self._open_or_clone(identity, workspace)
        git_service = self.git_service

        logger.info(f"Fetching the latest on the branch '{base_branch}' from the parent repository...")
        await asyncio.to_thread(
            git_service.ensure_remote, repo, UPSTREAM_REMOTE, git_service.remote_url(upstream)
        )
        await asyncio.to_thread(git_service.fetch_all, repo)
        await asyncio.to_thread(git_service.checkout_base, repo, base_branch, UPSTREAM_REMOTE)

        logger.info(f"Merging the latest from the parent repository into '{base_branch}'...")
        await asyncio.to_thread(git_service.merge, repo, f"{UPSTREAM_REMOTE}/{base_branch}")

        logger.info(f"Getting the last commit from the branch '{base_branch}'...")
        commit = repo.heads[base_branch].commit

        logger.info("Resetting local repository...")
        await asyncio.to_thread(git_service.hard_reset, repo, commit)

        logger.info("Getting a list of files in the working tree...")
        entries = await asyncio.to_thread(git_service.walk_tree, commit)
        logger.debug(f"{len(entries)} tracked files at {commit.hexsha}")

        return SyncResult(
            base_commit=commit.hexsha,
            tree_entries=entries,
            workspace=workspace,
            repository=repo,
        )


__all__ = [
    "UPSTREAM_REMOTE",
    "RepositorySynchronizer",
]
