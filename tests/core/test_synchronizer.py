from pathlib import Path

import pytest
from git import Actor, Repo

from typolet.core.synchronizer import UPSTREAM_REMOTE, RepositorySynchronizer
from typolet.infrastructure.error_handler import SynchronizationError, TransientNetworkError
from typolet.infrastructure.retry_manager import RetryManager
from typolet.models import RepositoryIdentity, clone_path
from typolet.services.git_service import GitService


AUTHOR = Actor("Test Author", "author@example.com")
UPSTREAM = RepositoryIdentity("alice", "project")
FORK = RepositoryIdentity("bob", "project")


# ---- Helpers ---------------------------------------------------------------

def commit_file(repo: Repo, relpath: str, content: str):
    target = Path(repo.working_tree_dir) / relpath
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    repo.index.add([relpath])
    return repo.index.commit(f"add {relpath}", author=AUTHOR, committer=AUTHOR)


@pytest.fixture
def remotes(tmp_path):
    """A seed repository published as bare remotes for the upstream and the fork."""

    seed = Repo.init(tmp_path / "seed", initial_branch="master")
    commit_file(seed, "README.md", "Teh project\n")
    commit_file(seed, "docs/guide.md", "A guide\n")

    host = tmp_path / "host"
    for identity in (UPSTREAM, FORK):
        Repo.clone_from(
            str(tmp_path / "seed"), host / identity.owner / f"{identity.name}.git", bare=True
        )
    return seed, host


def make_synchronizer(tmp_path, host):
    return RepositorySynchronizer(
        GitService(base_url=host.as_uri()),
        workspace_root=tmp_path / "work",
        retry_manager=RetryManager(max_retries=1, base_delay=0.01),
    )


# ---- synchronize -----------------------------------------------------------

@pytest.mark.asyncio
async def test_synchronize_clones_and_lists_tree(tmp_path, remotes):
    seed, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)

    result = await synchronizer.synchronize(FORK, UPSTREAM, "master")

    assert result.base_commit == seed.head.commit.hexsha
    assert result.paths == ["README.md", "docs/guide.md"]
    assert result.workspace.path == clone_path(tmp_path / "work", FORK)
    assert not result.workspace.exists
    assert UPSTREAM_REMOTE in [remote.name for remote in result.repository.remotes]
    assert result.tree_entries[0].read_text() == "Teh project\n"


@pytest.mark.asyncio
async def test_synchronize_is_idempotent(tmp_path, remotes):
    _, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)

    first = await synchronizer.synchronize(FORK, UPSTREAM, "master")
    second = await synchronizer.synchronize(FORK, UPSTREAM, "master")

    assert second.workspace.exists
    assert second.base_commit == first.base_commit
    assert second.paths == first.paths


@pytest.mark.asyncio
async def test_synchronize_picks_up_upstream_commits(tmp_path, remotes):
    seed, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)
    await synchronizer.synchronize(FORK, UPSTREAM, "master")

    newer = commit_file(seed, "CHANGES.txt", "new upstream file\n")
    seed.git.push(str(host / "alice" / "project.git"), "master")

    result = await synchronizer.synchronize(FORK, UPSTREAM, "master")

    assert result.base_commit == newer.hexsha
    assert "CHANGES.txt" in result.paths


@pytest.mark.asyncio
async def test_synchronize_discards_local_edits(tmp_path, remotes):
    _, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)
    first = await synchronizer.synchronize(FORK, UPSTREAM, "master")
    readme = first.workspace.path / "README.md"
    readme.write_text("local edit\n")

    await synchronizer.synchronize(FORK, UPSTREAM, "master")

    assert readme.read_text() == "Teh project\n"


@pytest.mark.asyncio
async def test_new_fork_replaces_stale_directory(tmp_path, remotes):
    _, host = remotes
    stale = clone_path(tmp_path / "work", FORK)
    stale.mkdir(parents=True)
    (stale / "leftover.md").write_text("old run\n")
    synchronizer = make_synchronizer(tmp_path, host)

    result = await synchronizer.synchronize(FORK, UPSTREAM, "master", is_new_fork=True)

    assert not (stale / "leftover.md").exists()
    assert "leftover.md" not in result.paths


@pytest.mark.asyncio
async def test_missing_base_branch_fails(tmp_path, remotes):
    _, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)

    with pytest.raises(SynchronizationError):
        await synchronizer.synchronize(FORK, UPSTREAM, "release")


@pytest.mark.asyncio
async def test_clone_failure_is_retried_then_raised(tmp_path, remotes):
    _, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)
    missing = RepositoryIdentity("bob", "missing")

    with pytest.raises(TransientNetworkError):
        await synchronizer.synchronize(missing, UPSTREAM, "master")


def test_prepare_workspace_reports_existing_clone(tmp_path, remotes):
    _, host = remotes
    synchronizer = make_synchronizer(tmp_path, host)
    path = clone_path(tmp_path / "work", FORK)
    Repo.init(path)

    assert synchronizer.prepare_workspace(FORK, is_new_fork=False).exists
    assert not synchronizer.prepare_workspace(FORK, is_new_fork=True).exists
    assert not path.exists()


@pytest.fixture
def no_git_identity(tmp_path, monkeypatch):
    """Hide every user-level and system-level git identity."""

    home = tmp_path / "empty-home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for key in ("GIT_AUTHOR_NAME", "GIT_AUTHOR_EMAIL", "GIT_COMMITTER_NAME",
                "GIT_COMMITTER_EMAIL", "EMAIL"):
        monkeypatch.delenv(key, raising=False)


@pytest.mark.asyncio
async def test_synchronize_merges_diverged_histories(tmp_path, remotes, no_git_identity):
    seed, host = remotes

    fork_work = Repo.clone_from(str(host / "bob" / "project.git"), tmp_path / "fork-work")
    commit_file(fork_work, "fork.md", "fork only\n")
    fork_work.git.push("origin", "master")

    commit_file(seed, "up.md", "upstream only\n")
    seed.git.push(str(host / "alice" / "project.git"), "master")

    synchronizer = make_synchronizer(tmp_path, host)
    result = await synchronizer.synchronize(FORK, UPSTREAM, "master")

    assert result.paths == ["README.md", "docs/guide.md", "fork.md", "up.md"]
    merged = result.repository.commit(result.base_commit)
    assert len(merged.parents) == 2
    assert merged.committer.name == "Typolet"
