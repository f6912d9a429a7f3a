"""
Working copy and synchronization models for Typolet.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List

from .github import RepositoryIdentity


def normalize_path(path: str) -> str:
    """Convert backslash separators to forward slashes."""

    return path.replace("\\", "/")


def clone_path(root: Path, identity: RepositoryIdentity) -> Path:
    """Local storage location for a repository; depends only on owner and name."""

    return Path(root) / identity.owner / identity.name


@dataclass(frozen=True)
class CloneWorkspace:
    """Local directory holding a working copy."""

    path: Path
    exists: bool


@dataclass(frozen=True)
class TreeEntry:
    """A tracked file in a commit, with lazy access to its contents."""

    path: str
    blob_accessor: Callable[[], bytes] = field(repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))

    def read_bytes(self) -> bytes:
        return self.blob_accessor()

    def read_text(self) -> str:
        """Decoded contents with LF line endings and HTML entities resolved."""

        text = self.read_bytes().decode("utf-8", errors="replace")
        return html.unescape(text.replace("\r\n", "\n"))


@dataclass
class SyncResult:
    """State of the working copy after merge and hard reset."""

    base_commit: str
    tree_entries: List[TreeEntry]
    workspace: CloneWorkspace
    repository: Any = field(default=None, repr=False, compare=False)

    @property
    def paths(self) -> List[str]:
        return [entry.path for entry in self.tree_entries]


__all__ = [
    "normalize_path",
    "clone_path",
    "CloneWorkspace",
    "TreeEntry",
    "SyncResult",
]
