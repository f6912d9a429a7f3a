import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from typolet.infrastructure.error_handler import ValidationError
from typolet.infrastructure.logger import logger
from typolet.interfaces.api import RepositorySpellchecker, build_criteria, parse_repository
from typolet.models import RepositoryIdentity, TypoletConfig


@pytest.fixture
def config(tmp_path):
    return TypoletConfig(token="tkn", workspace_root=tmp_path)


@pytest.fixture(autouse=True)
def restore_log_level():
    level = logger.level
    yield
    logger.setLevel(level)


# ---- parse_repository ------------------------------------------------------

@pytest.mark.parametrize("value, expected", [
    ("alice/project", ("alice", "project")),
    ("alice/my.project", ("alice", "my.project")),
    ("https://github.com/alice/project", ("alice", "project")),
    ("https://github.com/alice/project.git", ("alice", "project")),
    ("github.com/alice/project/", ("alice", "project")),
    ("https://www.github.com/alice/project/tree/master/docs", ("alice", "project")),
])
def test_parse_repository(value, expected):
    assert parse_repository(value) == RepositoryIdentity(*expected)


@pytest.mark.parametrize("value, message", [
    (None, "No repository name specified."),
    ("", "No repository name specified."),
    ("project", "Repository name is invalid."),
    ("https://gitlab.com/alice/project", "Repository name is invalid."),
])
def test_parse_repository_rejects(value, message):
    with pytest.raises(ValidationError, match=message):
        parse_repository(value)


# ---- build_criteria --------------------------------------------------------

def test_build_criteria_normalizes_extensions():
    criteria = build_criteria([".md", "txt"], include=["docs/**"], exclude=["drafts/**"])

    assert criteria.extensions == frozenset({"md", "txt"})
    assert criteria.include_globs == ("docs/**",)
    assert criteria.exclude_globs == ("drafts/**",)


@pytest.mark.parametrize("extensions", [[], ["."], [""]])
def test_build_criteria_requires_an_extension(extensions):
    with pytest.raises(ValidationError, match="Provide at least one extension."):
        build_criteria(extensions)


# ---- RepositorySpellchecker ------------------------------------------------

@pytest.mark.asyncio
async def test_verbose_sets_debug_level(config):
    async with RepositorySpellchecker(config, verbose=True) as checker:
        assert logger.level == logging.DEBUG
        checker.set_verbose(False)
        assert logger.level == logging.INFO


@pytest.mark.asyncio
async def test_services_follow_config(config):
    async with RepositorySpellchecker(config) as checker:
        assert checker.github_service.auth_token == "tkn"
        assert checker.git_service.credentials.token == "tkn"
        assert checker.retry_manager.max_retries == config.clone_max_retries


@pytest.mark.asyncio
async def test_build_saga_requires_collaborators(config):
    async with RepositorySpellchecker(config, detector=MagicMock()) as checker:
        with pytest.raises(ValidationError):
            checker.build_saga()


@pytest.mark.asyncio
async def test_spellcheck_builds_request(config, monkeypatch):
    saga = MagicMock()
    saga.execute = AsyncMock(return_value="result")

    async with RepositorySpellchecker(
        config, detector=MagicMock(), correction_engine=MagicMock()
    ) as checker:
        monkeypatch.setattr(checker, "build_saga", lambda: saga)
        result = await checker.spellcheck(
            "alice/project", extensions=["rst"], exclude=["old/**"], base="main", quiet=True
        )

    assert result == "result"
    request = saga.execute.await_args.args[0]
    assert request.target == RepositoryIdentity("alice", "project")
    assert request.criteria.extensions == frozenset({"rst"})
    assert request.criteria.exclude_globs == ("old/**",)
    assert request.base_branch == "main"
    assert request.branch == "fix-typos"
    assert request.quiet


@pytest.mark.asyncio
async def test_spellcheck_rejects_bad_repository_before_any_request(config):
    async with RepositorySpellchecker(
        config, detector=MagicMock(), correction_engine=MagicMock()
    ) as checker:
        checker.github_service.list_user_repositories = AsyncMock()
        with pytest.raises(ValidationError):
            await checker.spellcheck("nope")
        checker.github_service.list_user_repositories.assert_not_called()
