"""
Seams for the spelling detector and the correction engine.

Neither is implemented here. Installed distributions provide them through
the ``typolet.collaborators`` entry point group, under the names
``detector`` and ``correction_engine``.
"""

from importlib.metadata import entry_points
from typing import Any, Protocol, Sequence, runtime_checkable

from ..infrastructure.error_handler import CollaboratorError
from ..models import CorrectionResult, Misspelling


ENTRY_POINT_GROUP = "typolet.collaborators"


@runtime_checkable
class MisspellingDetector(Protocol):
    def detect(self, text: str, path: str) -> Sequence[Misspelling]:
        """Suspected spelling mistakes in ``text`` read from ``path``."""


@runtime_checkable
class CorrectionEngine(Protocol):
    def correct(self, misspellings: Sequence[Misspelling], repository: Any) -> CorrectionResult:
        """Let the user apply corrections to the working tree of ``repository``."""


def load_collaborator(name: str) -> Any:
    """Instantiate the collaborator registered under ``name``."""

    matches = [ep for ep in entry_points(group=ENTRY_POINT_GROUP) if ep.name == name]
    if not matches:
        raise CollaboratorError(
            f"No '{name}' registered in the '{ENTRY_POINT_GROUP}' entry point group"
        )
    factory = matches[0].load()
    return factory() if isinstance(factory, type) else factory


__all__ = [
    "ENTRY_POINT_GROUP",
    "MisspellingDetector",
    "CorrectionEngine",
    "load_collaborator",
]
