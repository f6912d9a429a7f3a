"""
Scan domain models for Typolet.

This module contains the file filtering criteria, spelling findings and the
request/result pair exchanged with the provisioning saga.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from .github import PullRequestInfo, RepositoryIdentity
from .provisioning import ProvisioningOutcome
from .sync import TreeEntry


DEFAULT_EXTENSIONS = ("md", "txt")
DEFAULT_BRANCH = "fix-typos"
DEFAULT_BASE = "master"


@dataclass(frozen=True)
class FilterCriteria:
    """Criteria narrowing the tracked files handed to the detector."""

    extensions: FrozenSet[str] = frozenset(DEFAULT_EXTENSIONS)
    include_globs: Tuple[str, ...] = ()
    exclude_globs: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        normalized = frozenset(ext.lstrip(".") for ext in self.extensions if ext.lstrip("."))
        if not normalized:
            raise ValueError("Provide at least one extension.")
        object.__setattr__(self, "extensions", normalized)
        object.__setattr__(self, "include_globs", tuple(self.include_globs))
        object.__setattr__(self, "exclude_globs", tuple(self.exclude_globs))

    @property
    def suffixes(self) -> Tuple[str, ...]:
        return tuple(sorted(f".{ext}" for ext in self.extensions))

    def matches_extension(self, path: str) -> bool:
        return path.endswith(self.suffixes)


@dataclass
class FilterResult:
    """Result of running the tree filter pipeline."""

    included_entries: List[TreeEntry]
    total_entries: int
    excluded_by_include: int = 0
    excluded_by_exclude: int = 0
    excluded_by_extension: int = 0

    @property
    def filtered_entries(self) -> int:
        return len(self.included_entries)

    @property
    def paths(self) -> List[str]:
        return [entry.path for entry in self.included_entries]


@dataclass(frozen=True)
class Misspelling:
    """A suspected spelling mistake reported by the detector."""

    word: str
    location: int
    suggestions: Tuple[str, ...] = ()
    path: Optional[str] = None


@dataclass(frozen=True)
class CorrectionResult:
    """What the correction engine applied to the working tree."""

    change_count: int
    final_diff: str = ""


@dataclass(frozen=True)
class ScanRequest:
    """Everything one saga run needs to know about the user's intent."""

    target: RepositoryIdentity
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    base_branch: str = DEFAULT_BASE
    branch: str = DEFAULT_BRANCH
    quiet: bool = False
    confirm: Optional[Callable[[CorrectionResult], bool]] = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.base_branch or not self.branch:
            raise ValueError("Branch names must not be empty")


@dataclass
class ScanResult:
    """Outcome of a completed saga run."""

    outcome: ProvisioningOutcome
    base_commit: Optional[str] = None
    scanned_paths: List[str] = field(default_factory=list)
    misspellings: Sequence[Misspelling] = ()
    change_count: int = 0
    final_diff: str = ""
    pull_request: Optional[PullRequestInfo] = None
    compare_url: Optional[str] = None
    declined: bool = False
    fork_deleted: bool = False

    @property
    def has_changes(self) -> bool:
        return self.change_count > 0


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_BRANCH",
    "DEFAULT_BASE",
    "FilterCriteria",
    "FilterResult",
    "Misspelling",
    "CorrectionResult",
    "ScanRequest",
    "ScanResult",
]
