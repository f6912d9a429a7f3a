"""
Orchestrator for a complete spell-checking run, with compensation for
forks the run created but could not make use of.
"""

import asyncio
from dataclasses import replace
from typing import List, Optional, Sequence

from ..infrastructure.logger import logger
from ..models import (
    DirectAccess,
    ForkAccess,
    Misspelling,
    ProvisioningOutcome,
    RepositoryIdentity,
    ScanRequest,
    ScanResult,
    TreeEntry,
)
from .access import AccessResolver
from .collaborators import CorrectionEngine, MisspellingDetector
from .filter import TreeFilterPipeline
from .provisioner import ForkProvisioner
from .publisher import PullRequestPublisher
from .synchronizer import RepositorySynchronizer


####
##      PROVISIONING SAGA
#####
class ProvisioningSaga:
    """
    Sequences access resolution, fork provisioning, synchronization,
    filtering, spell-checking and publishing.

    Fork creation is the only irreversible step. A fork created by this run
    is deleted again when the run ends with no accepted change or fails at
    any later point; pre-existing repositories are never deleted.
    """

    def __init__(
        self,
        access_resolver: AccessResolver,
        provisioner: ForkProvisioner,
        synchronizer: RepositorySynchronizer,
        detector: MisspellingDetector,
        correction_engine: CorrectionEngine,
        publisher: Optional[PullRequestPublisher] = None
    ):
        self.access_resolver = access_resolver
        self.provisioner = provisioner
        self.synchronizer = synchronizer
        self.detector = detector
        self.correction_engine = correction_engine
        self.publisher = publisher

    async def provision(self, target: RepositoryIdentity) -> ProvisioningOutcome:
        """Resolve access to ``target``, forking it if necessary."""

        state = await self.access_resolver.resolve(target)

        if isinstance(state, DirectAccess):
            return ProvisioningOutcome.for_repository(target, upstream=target)
        if isinstance(state, ForkAccess):
            return ProvisioningOutcome.for_repository(state.fork, upstream=target)

        fork = await self.provisioner.fork(target)
        return ProvisioningOutcome.for_repository(fork, upstream=target, is_new_fork=True)

    async def execute(self, request: ScanRequest) -> ScanResult:
        """
        Run the whole saga for ``request``.

        Returns:
            ScanResult describing what was scanned, changed and published

        Raises:
            Whatever failed, after compensating a fork created by this run.
        """
        outcome = await self.provision(request.target)

        try:
            result = await self._process(outcome, request)
        except BaseException:
            await self._compensate_after_failure(outcome)
            raise

        if not result.has_changes:
            logger.warning("No corrections added.")
            result.fork_deleted = await self._compensate(outcome)
        return result

    async def _process(self, outcome: ProvisioningOutcome, request: ScanRequest) -> ScanResult:
        sync = await self.synchronizer.synchronize(
            outcome.identity,
            outcome.upstream,
            request.base_branch,
            is_new_fork=outcome.is_new_fork,
        )

        filtered = await TreeFilterPipeline(request.criteria).apply(
            sync.tree_entries, sync.workspace.path
        )

        logger.info("Spell-checking the remaining files...")
        misspellings = await asyncio.to_thread(self._detect, filtered.included_entries)
        logger.info(f"Found {len(misspellings)} possible misspellings in {filtered.filtered_entries} files")

        correction = await asyncio.to_thread(
            self.correction_engine.correct, misspellings, sync.repository
        )
        result = ScanResult(
            outcome=outcome,
            base_commit=sync.base_commit,
            scanned_paths=filtered.paths,
            misspellings=misspellings,
            change_count=correction.change_count,
            final_diff=correction.final_diff,
        )

        if not result.has_changes or self.publisher is None:
            return result

        if not request.quiet:
            self.publisher.open_contributing_guidelines(outcome, sync, request.base_branch)

        logger.info("Overview of corrections")
        logger.info(correction.final_diff)

        if request.confirm is not None and not request.confirm(correction):
            logger.info("Pull request not created.")
            result.declined = True
            return result

        result.pull_request, result.compare_url = await self.publisher.publish(
            outcome,
            sync,
            branch=request.branch,
            base_branch=request.base_branch,
            change_count=correction.change_count,
            quiet=request.quiet,
        )
        return result

    def _detect(self, entries: Sequence[TreeEntry]) -> List[Misspelling]:
        misspellings: List[Misspelling] = []
        for entry in entries:
            found = self.detector.detect(entry.read_text(), entry.path)
            misspellings.extend(replace(misspelling, path=entry.path) for misspelling in found)
        return misspellings

    ####
    ##      COMPENSATION
    #####
    async def _compensate(self, outcome: ProvisioningOutcome) -> bool:
        """Delete the fork if this run created it. Returns whether it did."""

        if not outcome.is_new_fork:
            return False
        await self.provisioner.discard(outcome.identity)
        return True

    async def _compensate_after_failure(self, outcome: ProvisioningOutcome) -> None:
        # The original failure is what the caller needs to see
        try:
            await self._compensate(outcome)
        except Exception as e:
            logger.error(f"Could not delete {outcome.identity}: {e}")


__all__ = [
    "ProvisioningSaga",
]
