"""
Host and version-control services used by the core layer.
"""

from .github_api import GitHubAPIService
from .git_service import GitCredentials, GitService

__all__ = [
    "GitHubAPIService",
    "GitCredentials",
    "GitService",
]
