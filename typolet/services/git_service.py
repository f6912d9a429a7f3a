"""
Version-control operations for Typolet, built on GitPython.

All methods are blocking; async callers run them through
``asyncio.to_thread`` one at a time.
"""

import base64
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import git
from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from ..infrastructure.error_handler import (
    AuthenticationError,
    GitOperationError,
    MergeConflictError,
    SynchronizationError,
    TransientNetworkError,
)
from ..infrastructure.logger import logger
from ..models import RepositoryIdentity, TreeEntry
from ..models.config import DEFAULT_GIT_BASE_URL


FALLBACK_NAME = "Typolet"
FALLBACK_EMAIL = "typolet@users.noreply.github.com"

AUTH_FAILURE_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "invalid username or password",
    "permission denied",
    "returned error: 403",
)


class GitCredentials:
    """
    Supplies the token to git through per-command environment variables.

    The token is sent as an HTTP basic auth header scoped to the host, so it
    is never written to the repository's configuration.
    """

    def __init__(self, token: Optional[str], base_url: str = DEFAULT_GIT_BASE_URL):
        self.token = token
        self.base_url = base_url.rstrip("/")

    def environment(self) -> Dict[str, str]:
        env = {"GIT_TERMINAL_PROMPT": "0"}
        if not self.token or not self.base_url.startswith("http"):
            return env
        basic = base64.b64encode(f"{self.token}:x-oauth-basic".encode()).decode()
        env.update({
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": f"http.{self.base_url}/.extraheader",
            "GIT_CONFIG_VALUE_0": f"AUTHORIZATION: basic {basic}",
        })
        return env

    def __call__(self) -> Dict[str, str]:
        return self.environment()


def _is_auth_failure(error: GitCommandError) -> bool:
    text = f"{error.stderr or ''} {error}".lower()
    return any(marker in text for marker in AUTH_FAILURE_MARKERS)


def identity_environment(repo: Repo) -> Dict[str, str]:
    """
    Author and committer variables for commits git would otherwise refuse
    to create because no identity is configured.
    """
    reader = repo.config_reader()
    env: Dict[str, str] = {}
    for option, fallback in (("name", FALLBACK_NAME), ("email", FALLBACK_EMAIL)):
        if reader.get_value("user", option, default=""):
            continue
        for role in ("AUTHOR", "COMMITTER"):
            key = f"GIT_{role}_{option.upper()}"
            if not os.environ.get(key):
                env[key] = fallback
    return env


class GitService:
    """Wraps the git operations needed to synchronize and publish a working copy."""

    def __init__(
        self,
        credentials: Optional[GitCredentials] = None,
        base_url: str = DEFAULT_GIT_BASE_URL
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials or GitCredentials(None, self.base_url)

    def remote_url(self, identity: RepositoryIdentity) -> str:
        return f"{self.base_url}/{identity.owner}/{identity.name}.git"

    @contextmanager
    def _authenticated(self, repo: Repo) -> Iterator[None]:
        with repo.git.custom_environment(**self.credentials.environment()):
            yield

    ####
    ##      WORKING COPY
    #####
    @staticmethod
    def is_repository(path: Path) -> bool:
        return path.is_dir() and (path / ".git").exists()

    @staticmethod
    def remove(path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)

    def open(self, path: Path) -> Repo:
        try:
            return Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise GitOperationError(f"Not a git working copy: {path}", e) from e

    def clone(self, url: str, path: Path) -> Repo:
        """
        Clone ``url`` into ``path``.

        Anything already at ``path`` is discarded first so a retried clone
        never lands in a half-populated directory.
        """
        self.remove(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            return Repo.clone_from(url, path, env=self.credentials.environment())
        except GitCommandError as e:
            if _is_auth_failure(e):
                raise AuthenticationError(f"Git could not authenticate to {url}", e) from e
            raise TransientNetworkError(f"Failed to clone {url}", e) from e

    ####
    ##      REMOTES
    #####
    def ensure_remote(self, repo: Repo, name: str, url: str) -> git.Remote:
        """Look up remote ``name``, creating it with ``url`` if absent."""

        if name in [remote.name for remote in repo.remotes]:
            return repo.remote(name)
        logger.debug(f"Adding remote '{name}' -> {url}")
        return repo.create_remote(name, url)

    def fetch_all(self, repo: Repo) -> None:
        try:
            with self._authenticated(repo):
                repo.git.fetch("--all")
        except GitCommandError as e:
            if _is_auth_failure(e):
                raise AuthenticationError("Git could not authenticate while fetching", e) from e
            raise GitOperationError("Failed to fetch remotes", e) from e

    ####
    ##      BRANCHES, MERGE, RESET
    #####
    def checkout_base(self, repo: Repo, branch: str, upstream_remote: str) -> git.Head:
        """
        Force-checkout local ``branch``, creating it when missing from
        ``origin/<branch>`` or ``<upstream_remote>/<branch>``.
        """
        if branch not in [head.name for head in repo.heads]:
            remote_names = [remote.name for remote in repo.remotes]
            start = None
            for remote_name in ("origin", upstream_remote):
                if remote_name not in remote_names:
                    continue
                start = next(
                    (ref for ref in repo.remote(remote_name).refs if ref.remote_head == branch),
                    None,
                )
                if start is not None:
                    break
            if start is None:
                raise SynchronizationError(f"Base branch '{branch}' not found on any remote")
            repo.create_head(branch, start)

        head = repo.heads[branch]
        head.checkout(force=True)
        return head

    def merge(self, repo: Repo, ref: str) -> None:
        """Merge ``ref`` into the checked-out branch; conflicts are fatal."""

        try:
            with repo.git.custom_environment(**identity_environment(repo)):
                repo.git.merge(ref, "--no-edit")
        except GitCommandError as e:
            conflicts = self._unmerged_paths(repo)
            if conflicts:
                repo.git.merge("--abort")
                raise MergeConflictError(
                    f"Merging {ref} produced conflicts in {len(conflicts)} file(s)",
                    conflicting_paths=conflicts,
                    original_error=e,
                ) from e
            raise SynchronizationError(f"Failed to merge {ref}", e) from e

    @staticmethod
    def _unmerged_paths(repo: Repo) -> List[str]:
        output = repo.git.diff("--name-only", "--diff-filter=U")
        return [line for line in output.splitlines() if line]

    @staticmethod
    def hard_reset(repo: Repo, commit: git.Commit) -> None:
        repo.head.reset(commit, index=True, working_tree=True)

    @staticmethod
    def walk_tree(commit: git.Commit) -> List[TreeEntry]:
        """Every blob reachable from ``commit``'s tree, sorted by path."""

        entries = [
            TreeEntry(path=item.path, blob_accessor=lambda blob=item: blob.data_stream.read())
            for item in commit.tree.traverse()
            if item.type == "blob"
        ]
        return sorted(entries, key=lambda entry: entry.path)

    ####
    ##      PUBLISHING
    #####
    @staticmethod
    def create_branch(repo: Repo, name: str, commit: git.Commit) -> git.Head:
        head = repo.create_head(name, commit, force=True)
        head.checkout()
        return head

    @staticmethod
    def commit_all(repo: Repo, message: str) -> str:
        try:
            repo.git.add("--all")
            with repo.git.custom_environment(**identity_environment(repo)):
                repo.git.commit("-m", message)
        except GitCommandError as e:
            raise GitOperationError("Failed to commit corrections", e) from e
        return repo.head.commit.hexsha

    def push(self, repo: Repo, branch: str, remote: str = "origin") -> None:
        try:
            with self._authenticated(repo):
                repo.git.push(remote, f"refs/heads/{branch}")
        except GitCommandError as e:
            if _is_auth_failure(e):
                raise AuthenticationError(f"Git could not authenticate to push {branch}", e) from e
            raise GitOperationError(f"Failed to push {branch} to {remote}", e) from e


__all__ = [
    "GitCredentials",
    "GitService",
    "identity_environment",
]
