"""
User-facing entry points: the Python API and the command line.
"""

from .api import RepositorySpellchecker, parse_repository

__all__ = [
    "RepositorySpellchecker",
    "parse_repository",
]
