"""
Typolet: find or fork a writable copy of a GitHub repository, sync it with
upstream, and propose spelling fixes as a pull request.
"""

from .interfaces.api import RepositorySpellchecker
from .models import FilterCriteria, RepositoryIdentity, ScanRequest, ScanResult, TypoletConfig

__version__ = "0.1.0"

__all__ = [
    "RepositorySpellchecker",
    "FilterCriteria",
    "RepositoryIdentity",
    "ScanRequest",
    "ScanResult",
    "TypoletConfig",
]
