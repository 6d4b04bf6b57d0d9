"""
`difftargets` command line entry point.

Lists the functions a pull request changed, with their code, context and any
existing test file.

Usage
-----
difftargets --owner acme --repo shop --pr 42
difftargets --pr 42 --json              -- owner/repo from GITHUB_REPOSITORY
difftargets                             -- PR number from GITHUB_EVENT_PATH
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional

from .analysis import TestTarget, TestTargetExtractor
from .config import Config
from .errors import DiffTargetsError
from .github import GitHubClient
from .log import setup_logger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pr_number_from_event(event_path: Optional[str]) -> Optional[int]:
    """Read the PR number from a GitHub Actions event payload, if present."""
    if not event_path or not os.path.isfile(event_path):
        return None
    try:
        with open(event_path, "r", encoding="utf-8") as f:
            event = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to parse GITHUB_EVENT_PATH: %s", exc)
        return None
    pull_request = event.get("pull_request") or {}
    number = pull_request.get("number") or event.get("number")
    return int(number) if number else None


def _resolve_repo(args: argparse.Namespace) -> tuple[Optional[str], Optional[str]]:
    owner, repo = args.owner, args.repo
    if not (owner and repo):
        slug = os.getenv("GITHUB_REPOSITORY", "")
        if "/" in slug:
            env_owner, env_repo = slug.split("/", 1)
            owner, repo = owner or env_owner, repo or env_repo
    return owner, repo


def _print_targets(targets: list[TestTarget]) -> None:
    """Pretty-print a target list."""
    if not targets:
        print("  (no test targets)")
        return
    print(f"\nTest targets  [{len(targets)} result(s)]")
    print("-" * 60)
    for t in targets:
        label = f"{t.function_type:<15}  {t.function_name}"
        location = f"{t.file_path}:{t.start_line}-{t.end_line}"
        print(f"  {label:<50}  {location}")
        if t.existing_test_file:
            print(f"  {'':<15}  existing test: {t.existing_test_file}")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="difftargets",
        description="Find the functions a pull request changed",
    )
    parser.add_argument("--owner", help="Repository owner (default: from GITHUB_REPOSITORY)")
    parser.add_argument("--repo", help="Repository name (default: from GITHUB_REPOSITORY)")
    parser.add_argument("--pr", type=int, help="Pull request number (default: from GITHUB_EVENT_PATH)")
    parser.add_argument("--token", help="GitHub token (default: GITHUB_TOKEN)")
    parser.add_argument("--ref", help="Ref to read files at (default: the PR head SHA)")
    parser.add_argument("--config", default=None, help="Path to a .difftargets.yaml file")
    parser.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config)
    except DiffTargetsError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    log = setup_logger(debug=args.debug or config.DEBUG, json_output=config.JSON_OUTPUT)

    owner, repo = _resolve_repo(args)
    pr_number = args.pr or _pr_number_from_event(os.getenv("GITHUB_EVENT_PATH"))
    if not (owner and repo and pr_number):
        parser.print_usage(sys.stderr)
        print("difftargets: --owner, --repo and --pr are required "
              "(or GITHUB_REPOSITORY / GITHUB_EVENT_PATH)", file=sys.stderr)
        return 2

    client = GitHubClient(
        token=args.token or config.GITHUB_TOKEN,
        owner=owner,
        repo=repo,
        base_url=config.GITHUB_API_URL,
        max_retries=config.GITHUB_MAX_RETRIES,
        retry_delay=config.GITHUB_RETRY_DELAY,
    )

    try:
        ref = args.ref or client.get_pull_request(pr_number)["head"]["sha"]
        files = client.list_pull_request_files(pr_number)
    except DiffTargetsError as exc:
        log.error("Cannot read PR #%d: %s", pr_number, exc)
        return 1

    extractor = TestTargetExtractor.from_config(
        config, client.get_file_contents, client.file_exists, logger=log,
    )
    targets = extractor.extract(files, ref)

    if len(targets) > config.MAX_TARGETS:
        log.warning("Limiting to %d of %d test target(s)", config.MAX_TARGETS, len(targets))
        targets = targets[:config.MAX_TARGETS]

    if args.json:
        print(json.dumps([t.to_dict() for t in targets], indent=2))
    else:
        _print_targets(targets)
    return 0


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    sys.exit(main())


if __name__ == "__main__":
    run()
