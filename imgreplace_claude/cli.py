"""CLI entry point for imgreplace-claude.

Replace images in an Intercom article using Claude visual matching.

Usage::

    imgreplace-claude replace 4727254 https://x/old.png https://x/new.png
    imgreplace-claude replace 4727254 OLD NEW --dry-run -j 4
    imgreplace-claude scan 4727254
    imgreplace-claude show-prompt
"""

import argparse
import logging
import os
import sys

import colorlog

from imgreplace_claude import __version__
from imgreplace_claude.articles import ArticleStoreError, IntercomArticleStore
from imgreplace_claude.claude_api import ClaudeApi
from imgreplace_claude.client import create_client
from imgreplace_claude.fetcher import ImageFetcher, RetrievalError
from imgreplace_claude.models import MODELS, format_usage, fmt_duration
from imgreplace_claude.oracle import ClaudeOracle
from imgreplace_claude.orchestrator import ReplacementOrchestrator
from imgreplace_claude.prompt import COMPARE_PROMPT
from imgreplace_claude.references import extract_image_references


_log = logging.getLogger("imgreplace")

DEFAULT_MODEL_ALIAS = "sonnet-4"
"""Short alias for the default model (key into ``MODELS`` dict)."""

DEFAULT_TIMEOUT_S = 30.0
"""Default HTTP timeout for image and article requests."""

_SUMMARY_SEP = "=" * 78
"""Separator line for the summary block."""


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_colorized_logging():
    """Configure colorized logging output."""
    handler = colorlog.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)-12s%(reset)s: "
            "%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


def _setup_logging(verbose: bool) -> None:
    """Initialize colorized logging and optionally enable debug level."""
    setup_colorized_logging()
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    verbose_parent = argparse.ArgumentParser(add_help=False)
    verbose_parent.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    http_parent = argparse.ArgumentParser(add_help=False)
    http_parent.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        metavar="SECONDS",
        help="HTTP timeout for article and image requests "
             "(default: %(default)s).",
    )

    parser = argparse.ArgumentParser(
        prog="imgreplace-claude",
        description="Replace images in articles using Claude visual matching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  replace       Find and replace matching images (requires ANTHROPIC_API_KEY
                and INTERCOM_ACCESS_TOKEN)
  scan          List image references in an article
  show-prompt   Print the comparison prompt to stdout

Run '%(prog)s COMMAND --help' for command-specific options.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # -- replace ---------------------------------------------------------------
    p_replace = subparsers.add_parser(
        "replace",
        parents=[verbose_parent, http_parent],
        formatter_class=argparse.RawDescriptionHelpFormatter,
        help="Find and replace matching images in an article",
        description="Compare every image in the article with OLD_URL and "
                    "point all matching images at NEW_URL.",
        epilog="""
Examples:
  %(prog)s 4727254 https://x/old.png https://x/new.png
  %(prog)s 4727254 OLD NEW --dry-run        Report without updating
  %(prog)s 4727254 OLD NEW -j 4             Compare 4 images at a time
        """,
    )
    p_replace.add_argument("article_id", help="Article ID")
    p_replace.add_argument("old_url", help="URL of the image to replace")
    p_replace.add_argument("new_url", help="URL of the new image")
    p_replace.add_argument(
        "--model",
        choices=list(MODELS.keys()),
        default=DEFAULT_MODEL_ALIAS,
        help="Claude model to use (default: %(default)s).",
    )
    p_replace.add_argument(
        "--retries",
        type=int,
        default=3,
        metavar="N",
        help="Max attempts per comparison on transient API/network errors "
             "(default: %(default)s). Set to 1 to disable retry.",
    )
    p_replace.add_argument(
        "-j", "--jobs",
        type=int,
        default=1,
        metavar="N",
        help="Number of images to compare in parallel (default: 1). "
             "Match order is unaffected.",
    )
    p_replace.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Compute replacements but do not update the article",
    )

    # -- scan ------------------------------------------------------------------
    p_scan = subparsers.add_parser(
        "scan",
        parents=[verbose_parent, http_parent],
        help="List image references in an article",
        description="Fetch an article and print its distinct image "
                    "references (no ANTHROPIC_API_KEY needed).",
    )
    p_scan.add_argument("article_id", help="Article ID")

    # -- show-prompt -----------------------------------------------------------
    subparsers.add_parser(
        "show-prompt",
        help="Print the comparison prompt to stdout",
        description="Print the comparison prompt to stdout and exit.",
    )

    return parser


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _require_env(name: str) -> str | None:
    """Return an environment variable, logging an error when unset."""
    value = os.environ.get(name)
    if not value:
        _log.error("%s environment variable not set", name)
    return value


def _cmd_show_prompt(args: argparse.Namespace) -> int:
    """Handle the ``show-prompt`` command."""
    print(COMPARE_PROMPT)
    return 0


def _cmd_scan(args: argparse.Namespace) -> int:
    """Handle the ``scan`` command."""
    _setup_logging(args.verbose)

    token = _require_env("INTERCOM_ACCESS_TOKEN")
    if not token:
        return 1

    try:
        with IntercomArticleStore(token, timeout=args.timeout) as store:
            article = store.get_article(args.article_id)
    except ArticleStoreError as e:
        _log.error("%s", e)
        return 1

    references = extract_image_references(article.body)
    _log.info("Article %s: %d image(s)", args.article_id, len(references))
    for reference in references:
        print(reference)
    return 0


def _cmd_replace(args: argparse.Namespace) -> int:
    """Handle the ``replace`` command."""
    _setup_logging(args.verbose)

    inputs = [args.article_id, args.old_url, args.new_url]
    if not all(value.strip() for value in inputs):
        _log.error("Please fill in all required fields")
        return 1

    api_key = _require_env("ANTHROPIC_API_KEY")
    token = _require_env("INTERCOM_ACCESS_TOKEN")
    if not api_key or not token:
        return 1

    model = MODELS[args.model]
    _log.info("imgreplace-claude %s", __version__)
    _log.info("Model: %s (%s)", model.display_name, model.model_id)
    if args.jobs > 1:
        _log.info("Parallel: %d workers", args.jobs)
    if args.dry_run:
        _log.info("Dry run: article will not be updated")

    api = ClaudeApi(create_client(api_key), model, max_retries=args.retries)
    oracle = ClaudeOracle(api)

    try:
        with IntercomArticleStore(token, timeout=args.timeout) as store, \
                ImageFetcher(timeout=args.timeout) as fetcher:
            orchestrator = ReplacementOrchestrator(
                store, fetcher, oracle,
                max_workers=args.jobs,
                dry_run=args.dry_run,
            )
            summary = orchestrator.run(
                args.article_id.strip(), args.old_url.strip(), args.new_url.strip(),
            )
    except (ArticleStoreError, RetrievalError) as e:
        _log.error("%s", e)
        return 1
    except Exception as e:
        _log.error("Fatal error: %s: %s", type(e).__name__, e)
        return 1

    _log.info("")
    _log.info(_SUMMARY_SEP)
    _log.info(summary.message)
    _log.info(summary.details)
    for reference in summary.matched_references:
        _log.info("  matched: %s", reference)
    for reference in summary.failed_references:
        _log.warning("  skipped: %s", reference)
    if summary.usage is not None and summary.usage.calls:
        _log.info(format_usage(model, summary.usage))
    _log.info("Total time: %s", fmt_duration(summary.elapsed_seconds))
    _log.info(_SUMMARY_SEP)

    if args.dry_run:
        return 0 if summary.matches_found else 1
    return 0 if summary.success else 1


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = _build_parser()

    if argv is None:
        argv = sys.argv[1:]

    # Show help if no arguments provided.
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    handlers = {
        "replace": _cmd_replace,
        "scan": _cmd_scan,
        "show-prompt": _cmd_show_prompt,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
