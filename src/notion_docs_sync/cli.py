"""Command-line entry point for notion-docs-sync.

Resolves configuration (CLI > env vars / .env > YAML config > defaults),
runs one sync pass and prints the report on stdout.  Log lines and error
messages go to stderr.

Exit status: 0 when the pass completes (item-level failures included),
1 on a fatal error, 130 when interrupted.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import LoggingConfig, UnifiedConfig, build_config, to_fallbacks
from .core.client import NotionClient
from .errors import ConfigError, SyncError
from .logger import setup_logging
from .sync import SyncEngine, format_sync_report

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion-docs-sync",
        description="Mirror a folder of Markdown documents as child pages "
        "of a Notion root page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with settings from .env or .notion_sync/config.yml
  notion-docs-sync

  # Preview the work-lists without touching Notion
  notion-docs-sync --dry-run

  # Override the source folder and root page
  notion-docs-sync --folder docs --root-page https://www.notion.so/Docs-0123456789abcdef0123456789abcdef

  # Fail the pass when page content cannot be appended
  notion-docs-sync --strict

Note: prefer the NOTION_TOKEN env var over --token, which is visible in
the process list.
        """,
    )

    parser.add_argument(
        "--folder",
        help="Folder holding the Markdown documents (overrides FOLDER)",
    )
    parser.add_argument(
        "--token",
        help="Notion integration token (overrides NOTION_TOKEN)",
    )
    parser.add_argument(
        "--root-page",
        help="Root page id or URL ending in -<page-id> "
        "(overrides NOTION_ROOT_PAGE_ID)",
    )
    parser.add_argument(
        "--urls-root",
        help="Repository URL used to rewrite relative links "
        "(overrides RELATIVE_URLS_ROOT)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort the pass when appending page content fails",
    )
    parser.add_argument(
        "--delete-orphans",
        action="store_true",
        help="Delete child pages that have no local document",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and print the work-lists without changing anything",
    )
    parser.add_argument(
        "--log-file",
        help="Also append log lines to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"notion-docs-sync version {__version__}",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> tuple[Config, LoggingConfig]:
    """Merge every configuration source into a validated ``Config``.

    Raises:
        ConfigError: If the config file is malformed or a required
            setting is missing.
    """
    # .env first, so ${VAR} interpolation in YAML can use its values
    load_dotenv()

    unified = UnifiedConfig()
    config_files = discover_config_files()
    if config_files:
        raw = load_hierarchical_config(config_files)
        try:
            unified = build_config(raw)
        except ValidationError as exc:
            names = ", ".join(str(p) for p in config_files)
            raise ConfigError(f"Invalid config file(s) {names}: {exc}") from exc

    config = load_config(
        folder=args.folder,
        token=args.token,
        root_page=args.root_page,
        urls_root=args.urls_root,
        debug=args.debug,
        strict=args.strict,
        delete_orphans=args.delete_orphans,
        yaml_fallbacks=to_fallbacks(unified),
    )
    return config, unified.logging


async def main(config: Config, dry_run: bool = False) -> str:
    """Run one sync pass and return the formatted report."""
    client = NotionClient(config)
    try:
        engine = SyncEngine.from_config(client, config)
        report = await engine.run(dry_run=dry_run)
    finally:
        client.close()
    return format_sync_report(report)


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args(argv)

    try:
        config, logging_config = resolve_config(args)
    except SyncError as exc:
        _stderr_print(f"ERROR: {exc}")
        sys.exit(1)

    setup_logging(
        debug=config.debug,
        log_file=args.log_file or logging_config.file,
        log_format=args.log_format or logging_config.format,
        default_level=logging_config.level,
    )
    logger.debug("Root page id: %s", config.root_page_id)

    try:
        output = asyncio.run(main(config, dry_run=args.dry_run))
    except SyncError as exc:
        _stderr_print(f"ERROR: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        sys.exit(130)

    print(output)


if __name__ == "__main__":
    run()
