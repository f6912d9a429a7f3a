"""
Exception taxonomy and API error translation for Typolet.

Every failure surfaced by the package derives from ``TypoletError`` so the
command line can report it uniformly. Host API failures, whether raised by
httpx or by PyGithub, are translated into the taxonomy by
``handle_api_error``.
"""

import functools
import inspect
from typing import Any, Callable, List, Optional, Sequence

import httpx
from github import GithubException


####
##      EXCEPTION CLASSES
#####
class TypoletError(Exception):
    """Base exception for every failure raised by Typolet."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self._format())

    def _format(self) -> str:
        if self.original_error is not None:
            return f"{self.message} (Original: {self.original_error})"
        return self.message


class ValidationError(TypoletError):
    """Invalid user input, detected before any side effect."""


class AuthenticationError(TypoletError):
    """The host rejected the credential."""


class RateLimitError(TypoletError):
    """The host API rate limit was exceeded."""


class RepositoryNotFoundError(TypoletError):
    """The requested repository does not exist or is not visible."""


class GitHubAPIError(TypoletError):
    """Any other host API failure."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        status: Optional[int] = None
    ):
        self.status = status
        super().__init__(message, original_error)


class TransientNetworkError(TypoletError):
    """A network failure that may succeed when attempted again."""


class GitOperationError(TypoletError):
    """A version-control command failed."""


class SynchronizationError(TypoletError):
    """The working copy could not be reconciled with upstream."""


class MergeConflictError(SynchronizationError):
    """Merging the upstream base branch produced conflicts."""

    def __init__(
        self,
        message: str,
        conflicting_paths: Sequence[str] = (),
        original_error: Optional[Exception] = None
    ):
        self.conflicting_paths = list(conflicting_paths)
        super().__init__(message, original_error)


class ProbeAggregateError(TypoletError):
    """One or more fork-parent probes failed and none matched."""

    def __init__(self, message: str, failures: Sequence[Any]):
        self.failures: List[Any] = list(failures)
        super().__init__(message)


class CollaboratorError(TypoletError):
    """A spell-checking collaborator is missing or misbehaved."""


####
##      API ERROR TRANSLATION
#####
def _status_of(error: Exception) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    if isinstance(error, GithubException):
        return error.status
    return None


def translate_api_error(error: Exception) -> TypoletError:
    """Map an httpx or PyGithub exception onto the Typolet taxonomy."""

    if isinstance(error, TypoletError):
        return error

    if isinstance(error, (httpx.HTTPStatusError, GithubException)):
        status = _status_of(error)
        text = str(error).lower()
        if status == 401:
            return AuthenticationError("GitHub rejected the credential", error)
        if status == 403 and "rate limit" in text:
            return RateLimitError("GitHub API rate limit exceeded", error)
        if status == 403:
            return AuthenticationError("GitHub denied access to the resource", error)
        if status == 404:
            return RepositoryNotFoundError("Repository not found", error)
        return GitHubAPIError(f"GitHub API error (status {status})", error, status=status)

    if isinstance(error, httpx.TransportError):
        return TransientNetworkError("Network error while talking to GitHub", error)

    return GitHubAPIError(f"Unexpected error: {error}", error)


def handle_api_error(func: Callable) -> Callable:
    """
    Decorator translating host API failures into ``TypoletError`` subclasses.

    Works for both plain functions and coroutine functions.
    """

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                translated = translate_api_error(e)
                if translated is e:
                    raise
                raise translated from e

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            translated = translate_api_error(e)
            if translated is e:
                raise
            raise translated from e

    return wrapper


__all__ = [
    "TypoletError",
    "ValidationError",
    "AuthenticationError",
    "RateLimitError",
    "RepositoryNotFoundError",
    "GitHubAPIError",
    "TransientNetworkError",
    "GitOperationError",
    "SynchronizationError",
    "MergeConflictError",
    "ProbeAggregateError",
    "CollaboratorError",
    "translate_api_error",
    "handle_api_error",
]
