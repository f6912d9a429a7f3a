"""
High-level Python API for Typolet.

Wires the services and core components together from a ``TypoletConfig``
and exposes one call per spell-checking run.
"""

import logging
import re
import webbrowser
from typing import Callable, Iterable, Optional

from ..core import (
    AccessResolver,
    ForkProvisioner,
    ProvisioningSaga,
    PullRequestPublisher,
    RepositorySynchronizer,
)
from ..core.collaborators import CorrectionEngine, MisspellingDetector
from ..infrastructure.error_handler import ValidationError
from ..infrastructure.logger import logger
from ..infrastructure.rate_limiter import RateLimiter
from ..infrastructure.retry_manager import RetryConfig, RetryManager
from ..models import (
    CorrectionResult,
    FilterCriteria,
    RepositoryIdentity,
    ScanRequest,
    ScanResult,
    TypoletConfig,
)
from ..models.scan import DEFAULT_BASE, DEFAULT_BRANCH, DEFAULT_EXTENSIONS
from ..services import GitCredentials, GitHubAPIService, GitService


REPOSITORY_PATTERNS = (
    re.compile(r"^(?:https?://)?(?:www\.)?github\.com/([-\w]+)/([-\w.]+?)(?:\.git)?(?:/[^/]+)*/?$"),
    re.compile(r"^([-\w]+)/([-\w.]+)$"),
)


def parse_repository(repository: Optional[str]) -> RepositoryIdentity:
    """Accept ``owner/name`` or a github.com URL pointing into the repository."""

    if not repository:
        raise ValidationError("No repository name specified.")

    for pattern in REPOSITORY_PATTERNS:
        match = pattern.match(repository.strip())
        if match:
            return RepositoryIdentity(owner=match.group(1), name=match.group(2))

    raise ValidationError("Repository name is invalid.")


def build_criteria(
    extensions: Iterable[str],
    include: Iterable[str] = (),
    exclude: Iterable[str] = ()
) -> FilterCriteria:
    extensions = [ext for ext in extensions if ext.lstrip(".")]
    if not extensions:
        raise ValidationError("Provide at least one extension.")
    return FilterCriteria(
        extensions=frozenset(extensions),
        include_globs=tuple(include),
        exclude_globs=tuple(exclude),
    )


class RepositorySpellchecker:
    """
    Entry point for spell-checking a GitHub repository and proposing fixes.

    Example:
        async with RepositorySpellchecker(detector=d, correction_engine=c) as checker:
            result = await checker.spellcheck("owner/repo")
    """

    def __init__(
        self,
        config: Optional[TypoletConfig] = None,
        detector: Optional[MisspellingDetector] = None,
        correction_engine: Optional[CorrectionEngine] = None,
        verbose: bool = False,
        open_url: Callable[[str], object] = webbrowser.open
    ):
        self.config = config or TypoletConfig.from_env()
        self.detector = detector
        self.correction_engine = correction_engine
        self.verbose = verbose
        self.set_verbose(verbose)

        config = self.config
        self.rate_limiter = RateLimiter()
        self.retry_manager = RetryManager.from_config(RetryConfig(
            max_retries=config.clone_max_retries,
            initial_delay=config.clone_base_delay,
            max_delay=config.clone_max_delay,
        ))
        self.github_service = GitHubAPIService(
            self.rate_limiter,
            auth_token=config.token,
            api_url=config.api_url,
            per_page=config.per_page,
            timeout=config.request_timeout,
        )
        self.git_service = GitService(
            GitCredentials(config.token, config.git_base_url),
            base_url=config.git_base_url,
        )
        self.open_url = open_url

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = verbose
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    def build_saga(self) -> ProvisioningSaga:
        if self.detector is None or self.correction_engine is None:
            raise ValidationError("A detector and a correction engine are required")

        return ProvisioningSaga(
            access_resolver=AccessResolver(self.github_service),
            provisioner=ForkProvisioner(self.github_service),
            synchronizer=RepositorySynchronizer(
                self.git_service, self.config.workspace_root, self.retry_manager
            ),
            detector=self.detector,
            correction_engine=self.correction_engine,
            publisher=PullRequestPublisher(
                self.git_service,
                self.github_service,
                web_base_url=self.config.git_base_url,
                open_url=self.open_url,
            ),
        )

    async def spellcheck(
        self,
        repository: str,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        branch: str = DEFAULT_BRANCH,
        base: str = DEFAULT_BASE,
        quiet: bool = False,
        confirm: Optional[Callable[[CorrectionResult], bool]] = None
    ) -> ScanResult:
        """
        Spell-check ``repository`` and open a pull request with the accepted
        corrections.

        Args:
            repository: ``owner/name`` or a github.com URL
            extensions: File extensions to check, with or without the dot
            include: Globs a file must match to be checked
            exclude: Globs that exclude a file from checking
            branch: Branch the corrections are committed to
            base: Upstream branch to synchronize with and target
            quiet: Do not open anything in a browser
            confirm: Asked before publishing; publishing proceeds when omitted

        Returns:
            ScanResult for the run
        """
        request = ScanRequest(
            target=parse_repository(repository),
            criteria=build_criteria(extensions, include, exclude),
            base_branch=base,
            branch=branch,
            quiet=quiet,
            confirm=confirm,
        )
        return await self.build_saga().execute(request)

    async def aclose(self) -> None:
        await self.github_service.aclose()

    async def __aenter__(self) -> "RepositorySpellchecker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


__all__ = [
    "parse_repository",
    "build_criteria",
    "RepositorySpellchecker",
]
