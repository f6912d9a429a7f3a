"""
Configuration models for Typolet.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GIT_BASE_URL = "https://github.com"


def _default_workspace_root() -> Path:
    return Path.home() / ".typolet"


@dataclass
class TypoletConfig:
    """
    Runtime settings for host access, local workspaces and retries.
    """

    token: Optional[str] = None

    # Host endpoints
    api_url: str = DEFAULT_API_URL
    git_base_url: str = DEFAULT_GIT_BASE_URL
    per_page: int = 100
    request_timeout: float = 30.0

    # Local working copies, one per (owner, name)
    workspace_root: Path = field(default_factory=_default_workspace_root)

    # Clone retry policy
    clone_max_retries: int = 3
    clone_base_delay: float = 1.0
    clone_max_delay: float = 30.0

    def __post_init__(self) -> None:
        self.workspace_root = Path(self.workspace_root).expanduser()
        self.api_url = self.api_url.rstrip("/")
        self.git_base_url = self.git_base_url.rstrip("/")
        if self.per_page <= 0:
            raise ValueError("per_page must be positive")
        if self.clone_max_retries < 0:
            raise ValueError("clone_max_retries cannot be negative")

    @classmethod
    def from_env(cls, **overrides) -> "TypoletConfig":
        """Build from ``GITHUB_TOKEN`` and ``TYPOLET_*`` environment variables."""

        values = {
            "token": os.environ.get("GITHUB_TOKEN") or None,
            "api_url": os.environ.get("TYPOLET_API_URL", DEFAULT_API_URL),
            "git_base_url": os.environ.get("TYPOLET_GIT_BASE_URL", DEFAULT_GIT_BASE_URL),
        }
        home = os.environ.get("TYPOLET_HOME")
        if home:
            values["workspace_root"] = Path(home)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_GIT_BASE_URL",
    "TypoletConfig",
]
