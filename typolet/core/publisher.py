"""
Turns accepted corrections into a pushed branch and a pull request.
"""

import asyncio
import webbrowser
from pathlib import Path
from typing import Callable, Optional, Tuple

from git import Repo

from ..infrastructure.logger import logger
from ..models import PullRequestInfo, ProvisioningOutcome, SyncResult
from ..services import GitHubAPIService, GitService


PULL_REQUEST_BODY = "PR created using typolet."
GITHUB_FILE_DIRS = ("", ".github", "docs")


def pluralize_typo(change_count: int) -> str:
    return "typo" if change_count == 1 else "typos"


def find_github_file(root: Path, name: str) -> Optional[str]:
    """
    Relative path of the first file whose name starts with ``name``
    (case-insensitive) at the root, in ``.github/`` or in ``docs/``.
    """
    prefix = name.lower()
    for directory in GITHUB_FILE_DIRS:
        folder = root / directory if directory else root
        if not folder.is_dir():
            continue
        for candidate in sorted(folder.iterdir()):
            if candidate.is_file() and candidate.name.lower().startswith(prefix):
                return candidate.relative_to(root).as_posix()
    return None


class PullRequestPublisher:
    """Commits the corrected working tree, pushes it and proposes it upstream."""

    def __init__(
        self,
        git_service: GitService,
        github_service: GitHubAPIService,
        web_base_url: str = "https://github.com",
        open_url: Callable[[str], object] = webbrowser.open
    ):
        self.git_service = git_service
        self.github_service = github_service
        self.web_base_url = web_base_url.rstrip("/")
        self.open_url = open_url

    def open_contributing_guidelines(
        self,
        outcome: ProvisioningOutcome,
        sync: SyncResult,
        base_branch: str
    ) -> Optional[str]:
        guidelines = find_github_file(sync.workspace.path, "CONTRIBUTING")
        if guidelines is None:
            return None
        url = f"{self.web_base_url}/{outcome.identity}/blob/{base_branch}/{guidelines}"
        logger.info(f"Opening {guidelines}...")
        self.open_url(url)
        return url

    async def publish(
        self,
        outcome: ProvisioningOutcome,
        sync: SyncResult,
        branch: str,
        base_branch: str,
        change_count: int,
        quiet: bool = False
    ) -> Tuple[Optional[PullRequestInfo], Optional[str]]:
        """
        Commit and push the corrections on ``branch``, then open a pull
        request against the upstream ``base_branch``.

        Returns:
            The created pull request, or the compare URL opened instead when
            the upstream has a pull request template.
        """
        repo: Repo = sync.repository
        git_service = self.git_service
        base_commit = repo.commit(sync.base_commit)
        typos = pluralize_typo(change_count)

        logger.info(f'Creating and checking out a new branch "{branch}"...')
        await asyncio.to_thread(git_service.create_branch, repo, branch, base_commit)

        logger.info("Committing all changes...")
        sha = await asyncio.to_thread(git_service.commit_all, repo, f"docs: fix {typos}")
        logger.info(f"Commit {sha} created.")

        logger.info('Pushing to remote "origin"...')
        await asyncio.to_thread(git_service.push, repo, branch)

        upstream = outcome.upstream
        head = f"{outcome.final_owner}:{branch}"
        if not quiet and find_github_file(sync.workspace.path, "PULL_REQUEST_TEMPLATE"):
            compare_url = f"{self.web_base_url}/{upstream}/compare/{base_branch}...{head}"
            logger.info("Opening the pull request creation page...")
            self.open_url(compare_url)
            return None, compare_url

        logger.info("Creating a pull request...")
        pull_request = await self.github_service.create_pull_request(
            upstream.owner,
            upstream.name,
            head=head,
            base=base_branch,
            title=f"Fix {typos}",
            body=PULL_REQUEST_BODY,
        )
        logger.info(f"Pull request #{pull_request.number} created.")
        if not quiet:
            self.open_url(pull_request.html_url)
        return pull_request, None


__all__ = [
    "find_github_file",
    "pluralize_typo",
    "PullRequestPublisher",
]
