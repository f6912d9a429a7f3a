"""
Core data models API surface for Typolet.

This file re-exports model classes from domain-specific modules so callers
can write ``from typolet.models import X``.
"""

from .github import (
    RepositoryIdentity,
    RepositoryInfo,
    PullRequestInfo,
    DirectAccess,
    ForkAccess,
    NeedsFork,
    RepoAccessState,
    ProbeMatched,
    ProbeNoMatch,
    ProbeFailed,
    ProbeResult,
)
from .sync import (
    normalize_path,
    clone_path,
    CloneWorkspace,
    TreeEntry,
    SyncResult,
)
from .provisioning import ProvisioningOutcome
from .scan import (
    FilterCriteria,
    FilterResult,
    Misspelling,
    CorrectionResult,
    ScanRequest,
    ScanResult,
)
from .config import TypoletConfig

__all__ = [
    # GitHub models
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
    # Working copy models
    "normalize_path",
    "clone_path",
    "CloneWorkspace",
    "TreeEntry",
    "SyncResult",
    # Saga models
    "ProvisioningOutcome",
    "FilterCriteria",
    "FilterResult",
    "Misspelling",
    "CorrectionResult",
    "ScanRequest",
    "ScanResult",
    # Config models
    "TypoletConfig",
]
