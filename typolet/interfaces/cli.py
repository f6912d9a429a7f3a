"""
Command line interface for Typolet.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv, set_key

from ..core.collaborators import load_collaborator
from ..infrastructure.error_handler import TypoletError, ValidationError
from ..infrastructure.logger import logger
from ..models import CorrectionResult, TypoletConfig
from ..models.scan import DEFAULT_BASE, DEFAULT_BRANCH, DEFAULT_EXTENSIONS
from .api import RepositorySpellchecker, build_criteria, parse_repository


DESCRIPTION = (
    "A tool for checking GitHub repositories for spelling errors "
    "and submitting PRs to fix them."
)
ENV_FILE = ".env"


class _ArgumentParser(argparse.ArgumentParser):
    """Reports bad arguments with the full usage guide and exit code 1."""

    def error(self, message: str) -> None:
        sys.stderr.write(f"{message}\n")
        self.print_help(sys.stderr)
        self.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="typolet", description=DESCRIPTION)
    parser.add_argument(
        "-r", "--repository", metavar="<username/repository or URL>",
        help="The repository to spellcheck.",
    )
    parser.add_argument(
        "-t", "--token", metavar="<token>",
        help="GitHub personal access token. Only needed the first time, "
             "and again whenever you have a new token.",
    )
    parser.add_argument(
        "--branch", default=DEFAULT_BRANCH, metavar="<branch name>",
        help="The name of the branch to commit corrections to.",
    )
    parser.add_argument(
        "--base", default=DEFAULT_BASE, metavar="<branch name>",
        help="The name of the branch to create the pull request against.",
    )
    parser.add_argument(
        "-e", "--extensions", nargs="*", default=list(DEFAULT_EXTENSIONS), metavar="<extension>",
        help="Only spellcheck files with these extensions.",
    )
    parser.add_argument(
        "--include", nargs="*", default=[], metavar="<glob>",
        help="Only spellcheck files that match at least one of these globs.",
    )
    parser.add_argument(
        "--exclude", nargs="*", default=[], metavar="<glob>",
        help="Do not spellcheck files that match one of these globs.",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true",
        help="Do not open CONTRIBUTING.md or the new pull request in a browser.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log every API request and git step.",
    )
    return parser


def persist_token(token: str, env_file: str = ENV_FILE) -> None:
    """Store the token in ``env_file`` so later runs pick it up."""

    Path(env_file).touch(exist_ok=True)
    set_key(env_file, "GITHUB_TOKEN", token)


def confirm_from_terminal(correction: CorrectionResult) -> bool:
    question = "Are you sure you want to create a pull request with these corrections?"
    while True:
        answer = input(f"{question} [y/n] ").strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False


async def _run(args: argparse.Namespace, config: TypoletConfig, detector, correction_engine, confirm):
    async with RepositorySpellchecker(
        config, detector=detector, correction_engine=correction_engine, verbose=args.verbose
    ) as checker:
        return await checker.spellcheck(
            args.repository,
            extensions=args.extensions,
            include=args.include,
            exclude=args.exclude,
            branch=args.branch,
            base=args.base,
            quiet=args.quiet,
            confirm=confirm,
        )


def main(
    argv: Optional[List[str]] = None,
    detector=None,
    correction_engine=None,
    confirm=confirm_from_terminal
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        build_criteria(args.extensions, args.include, args.exclude)
        parse_repository(args.repository)
    except ValidationError as e:
        sys.stderr.write(f"{e.message}\n")
        parser.print_help(sys.stderr)
        return 1

    if args.token:
        persist_token(args.token)
    load_dotenv(ENV_FILE, override=bool(args.token))

    config = TypoletConfig.from_env()
    if not config.token:
        logger.warning("No GITHUB_TOKEN configured; GitHub will reject most requests.")

    try:
        detector = detector or load_collaborator("detector")
        correction_engine = correction_engine or load_collaborator("correction_engine")
        result = asyncio.run(_run(args, config, detector, correction_engine, confirm))
    except TypoletError as e:
        logger.error(f"Error: {e}")
        logger.error("Exiting...")
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted. Exiting...")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

    if result.pull_request is not None:
        print(result.pull_request.html_url)
    elif result.compare_url is not None:
        print(result.compare_url)
    elif result.declined or not result.has_changes:
        logger.info("No corrections added. Exiting...")
    return 0


__all__ = [
    "build_parser",
    "persist_token",
    "confirm_from_terminal",
    "main",
]
