"""
Narrows the tracked files of a synchronized working copy.
"""

import asyncio
import glob
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set

from pathspec import GitIgnoreSpec

from ..infrastructure.logger import logger
from ..models import FilterCriteria, FilterResult, TreeEntry, normalize_path


def _gitignore_spec(root: Path) -> Optional[GitIgnoreSpec]:
    ignore_file = root / ".gitignore"
    if not ignore_file.is_file():
        return None
    lines = ignore_file.read_text(encoding="utf-8", errors="replace").splitlines()
    return GitIgnoreSpec.from_lines(lines)


def _glob_files(root: Path, pattern: str) -> Iterator[str]:
    for match in glob.iglob(normalize_path(pattern), root_dir=root, recursive=True):
        if (root / match).is_file():
            yield normalize_path(match)


def resolve_globs(root: Path, globs: Sequence[str]) -> Set[str]:
    """
    Files under ``root`` matching any of ``globs``, relative and with
    forward slashes.

    Patterns are anchored at ``root``: ``*`` stays within one directory and
    only ``**`` descends. Hidden files and directories are skipped unless
    the pattern names them explicitly, and files ignored by the working
    copy's ``.gitignore`` never match.
    """
    if not globs:
        return set()

    ignored = _gitignore_spec(root)
    return {
        path for pattern in globs for path in _glob_files(root, pattern)
        if not (ignored and ignored.match_file(path))
    }


class TreeFilterPipeline:
    """
    Applies include globs, exclude globs and the extension filter, in that
    fixed order.
    """

    def __init__(self, criteria: FilterCriteria):
        self.criteria = criteria

    @staticmethod
    def _in(paths: Set[str]) -> Callable[[TreeEntry], bool]:
        return lambda entry: normalize_path(entry.path) in paths

    async def apply(self, entries: Iterable[TreeEntry], root: Path) -> FilterResult:
        """
        Filter ``entries`` against the files of the working copy at ``root``.

        Include and exclude globs are resolved concurrently; the extension
        filter is applied last in memory.
        """
        criteria = self.criteria
        entries = list(entries)
        result = FilterResult(included_entries=entries, total_entries=len(entries))

        include_paths, exclude_paths = await asyncio.gather(
            asyncio.to_thread(resolve_globs, root, criteria.include_globs),
            asyncio.to_thread(resolve_globs, root, criteria.exclude_globs),
        )

        remaining: List[TreeEntry] = entries
        if criteria.include_globs:
            logger.info("Filtering the list to only include files that match the --include globs...")
            is_included = self._in(include_paths)
            kept = [entry for entry in remaining if is_included(entry)]
            result.excluded_by_include = len(remaining) - len(kept)
            remaining = kept

        if criteria.exclude_globs:
            logger.info("Excluding files that match the --exclude globs...")
            is_excluded = self._in(exclude_paths)
            kept = [entry for entry in remaining if not is_excluded(entry)]
            result.excluded_by_exclude = len(remaining) - len(kept)
            remaining = kept

        logger.info(
            "Filtering the list to only include files with extensions "
            f"'{', '.join(sorted(criteria.extensions))}'..."
        )
        kept = [entry for entry in remaining if criteria.matches_extension(entry.path)]
        result.excluded_by_extension = len(remaining) - len(kept)
        result.included_entries = kept

        logger.debug(f"Filtered {result.filtered_entries}/{result.total_entries} files")
        return result


__all__ = [
    "resolve_globs",
    "TreeFilterPipeline",
]
