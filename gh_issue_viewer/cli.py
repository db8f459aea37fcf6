"""Command line entry point: config, logging, client, then the UI."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from .config import LOG_LEVELS, load_config, resolve_repository, resolve_token
from .errors import ConfigError, GithubError
from .github import GithubClient
from .models import AppState
from .text import sanitize_message

LOG_FILE = "gh_issue_viewer.log"


def log_dir() -> str:
    base = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return os.path.join(base, "gh-issue-viewer")


def setup_logging(level: str, directory: Optional[str] = None) -> logging.Logger:
    """File logging only; the terminal belongs to the UI."""
    logger = logging.getLogger('gh_issue_viewer')
    # Always reset handlers so the CLI --log-level reliably controls file output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    if level.upper() == "NONE":
        logger.addHandler(logging.NullHandler())
        return logger
    directory = directory or log_dir()
    os.makedirs(directory, exist_ok=True)
    fh = RotatingFileHandler(os.path.join(directory, LOG_FILE), maxBytes=2000000, backupCount=2, encoding='utf-8')
    fh.setLevel(getattr(logging, level.upper(), logging.ERROR))
    fh.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
    logger.addHandler(fh)
    return logger


def resolve_login(client: GithubClient) -> str:
    try:
        return client.current_user() or "anonymous"
    except GithubError as exc:
        logging.getLogger('gh_issue_viewer').warning("User lookup failed: %s", sanitize_message(exc))
        return "anonymous"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gh-issue-viewer", description="Terminal viewer for GitHub issues")
    ap.add_argument("repository", nargs="*", metavar="OWNER [REPO]",
                    help="Repository as OWNER REPO or OWNER/REPO (defaults from config)")
    ap.add_argument("--config", help="Path to YAML config")
    ap.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS,
                    help="File log level (DEBUG, INFO, WARNING, ERROR, NONE)")
    ap.add_argument("--print-log-dir", action="store_true", help="Print the log directory and exit")
    ap.add_argument("--api-url", help="GitHub REST API base URL")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.print_log_dir:
        print(log_dir())
        return 0

    try:
        cfg = load_config(args.config)
        owner, repo = resolve_repository(cfg, args.repository)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger = setup_logging(args.log_level or cfg.log_level)
    logger.info("Starting for %s/%s", owner, repo)
    token = resolve_token()
    if not token:
        logger.info("No GitHub token found; using anonymous access")

    client = GithubClient(token=token, api_url=args.api_url or cfg.api_url, timeout=cfg.timeout)
    app_state = AppState(owner=owner, repo=repo, current_user=resolve_login(client))

    # Imported late so --print-log-dir and config errors need no terminal.
    from .app import IssueViewerApp

    try:
        IssueViewerApp(client, app_state, cfg).run()
    except GithubError as exc:
        logger.error("Fatal GitHub error: %s", sanitize_message(exc))
        print(f"error: {sanitize_message(exc)}", file=sys.stderr)
        return 1
    logger.info("Exited")
    return 0


if __name__ == "__main__":
    sys.exit(main())
