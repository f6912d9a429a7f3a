"""
Core saga components of Typolet.
"""

from .access import AccessResolver
from .provisioner import ForkProvisioner
from .synchronizer import RepositorySynchronizer
from .filter import TreeFilterPipeline
from .publisher import PullRequestPublisher
from .orchestrator import ProvisioningSaga

__all__ = [
    "AccessResolver",
    "ForkProvisioner",
    "RepositorySynchronizer",
    "TreeFilterPipeline",
    "PullRequestPublisher",
    "ProvisioningSaga",
]
