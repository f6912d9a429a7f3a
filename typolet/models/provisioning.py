"""
Provisioning outcome carried through the saga.
"""

from __future__ import annotations

from dataclasses import dataclass

from .github import RepositoryIdentity


@dataclass(frozen=True)
class ProvisioningOutcome:
    """
    Repository the run works against and whether this run created it.

    ``upstream`` is always the original target, even when the caller has
    direct access and ``identity`` equals it.
    """

    final_owner: str
    final_name: str
    is_new_fork: bool
    upstream: RepositoryIdentity

    @property
    def identity(self) -> RepositoryIdentity:
        return RepositoryIdentity(self.final_owner, self.final_name)

    @classmethod
    def for_repository(
        cls,
        repository: RepositoryIdentity,
        upstream: RepositoryIdentity,
        is_new_fork: bool = False
    ) -> "ProvisioningOutcome":
        return cls(
            final_owner=repository.owner,
            final_name=repository.name,
            is_new_fork=is_new_fork,
            upstream=upstream,
        )


__all__ = [
    "ProvisioningOutcome",
]
