"""
GitHub domain models for Typolet.

Repository addressing, host metadata, the access-resolution states and the
outcomes of fork-parent probes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True, order=True)
class RepositoryIdentity:
    """Addresses any repository, upstream or fork."""

    owner: str
    name: str

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise ValueError("Repository owner and name are required")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_full_name(cls, full_name: str) -> "RepositoryIdentity":
        owner, _, name = full_name.partition("/")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class RepositoryInfo:
    """Repository metadata as reported by the host."""

    owner: str
    name: str
    full_name: str
    is_fork: bool = False
    parent_full_name: Optional[str] = None
    html_url: Optional[str] = None
    default_branch: Optional[str] = None

    @property
    def identity(self) -> RepositoryIdentity:
        return RepositoryIdentity(self.owner, self.name)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "RepositoryInfo":
        """Build from a REST ``repository`` object."""

        parent = payload.get("parent") or {}
        return cls(
            owner=payload["owner"]["login"],
            name=payload["name"],
            full_name=payload["full_name"],
            is_fork=bool(payload.get("fork", False)),
            parent_full_name=parent.get("full_name"),
            html_url=payload.get("html_url"),
            default_branch=payload.get("default_branch"),
        )


@dataclass(frozen=True)
class PullRequestInfo:
    """A pull request created on the host."""

    number: int
    html_url: str


####
##      ACCESS STATES
#####
@dataclass(frozen=True)
class DirectAccess:
    """The caller owns or collaborates on the exact target."""


@dataclass(frozen=True)
class ForkAccess:
    """The caller owns a fork whose parent is the target."""

    fork: RepositoryIdentity


@dataclass(frozen=True)
class NeedsFork:
    """The caller has no usable access path yet."""


RepoAccessState = Union[DirectAccess, ForkAccess, NeedsFork]


####
##      FORK-PARENT PROBE RESULTS
#####
@dataclass(frozen=True)
class ProbeMatched:
    candidate: RepositoryIdentity


@dataclass(frozen=True)
class ProbeNoMatch:
    candidate: RepositoryIdentity


@dataclass(frozen=True)
class ProbeFailed:
    candidate: RepositoryIdentity
    error: Exception


ProbeResult = Union[ProbeMatched, ProbeNoMatch, ProbeFailed]


__all__ = [
    "RepositoryIdentity",
    "RepositoryInfo",
    "PullRequestInfo",
    "DirectAccess",
    "ForkAccess",
    "NeedsFork",
    "RepoAccessState",
    "ProbeMatched",
    "ProbeNoMatch",
    "ProbeFailed",
    "ProbeResult",
]
