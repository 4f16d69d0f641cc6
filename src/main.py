# src/main.py — v2
"""CLI entry point: analyze, reanalyze, duplicates commands.

Usage:
    docintel analyze <file> --company ACME --user u1 [--context invoice] [--save]
    docintel reanalyze <document_id> --company ACME --user u1 [--context invoice]
    docintel duplicates <document_id> [<document_id> ...] --company ACME --user u1

Results are printed to stdout as JSON; logs go to stderr. The document
store is chosen by STORAGE_BACKEND / STORAGE_ROOT (use json or sqlite to
keep documents between invocations).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from docintel.core.errors import InvalidInput
from docintel.core.models import DOCUMENT_CONTEXTS
from docintel.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FAILED

    from docintel.config.settings import ConfigurationError, Settings

    try:
        settings = Settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except InvalidInput as exc:
        logger.error("Invalid input: %s", exc)
        return EXIT_INVALID
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILED


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docintel",
        description=f"docintel v{__version__}: duplicate and relevance checks for uploads",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    identity = argparse.ArgumentParser(add_help=False)
    identity.add_argument("--company", required=True, help="Caller company id")
    identity.add_argument("--user", required=True, help="Caller user id")

    stages = argparse.ArgumentParser(add_help=False)
    stages.add_argument(
        "-c", "--context", default="generic_business", choices=DOCUMENT_CONTEXTS,
        help="Declared document context (default: generic_business)",
    )
    stages.add_argument("--strict", action="store_true", help="Strict relevance mode")
    stages.add_argument(
        "--scope", choices=("company", "user"), default=None,
        help="Duplicate scope (default from settings)",
    )
    stages.add_argument(
        "--tolerance", type=int, default=None,
        help="Temporal tolerance in days, 1-365 (default from settings)",
    )
    stages.add_argument("--include-archived", action="store_true")
    stages.add_argument("--no-duplicates", action="store_true", help="Skip duplicate detection")
    stages.add_argument("--no-relevance", action="store_true", help="Skip relevance analysis")
    stages.add_argument("--no-content", action="store_true", help="Skip content analysis")

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", parents=[identity, stages], help="Analyze a file before upload",
    )
    p_analyze.add_argument("file", type=Path, help="Path to the file")
    p_analyze.add_argument(
        "--mime-type", default=None,
        help="Mime type (guessed from the extension if omitted)",
    )
    p_analyze.add_argument(
        "--quick", action="store_true",
        help="Duplicates and file-fit relevance only",
    )
    p_analyze.add_argument(
        "--save", action="store_true",
        help="Store the file unless the recommendation is reject",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- reanalyze ---
    p_reanalyze = subparsers.add_parser(
        "reanalyze", parents=[identity, stages], help="Re-analyze a stored document",
    )
    p_reanalyze.add_argument("document_id", help="Stored document id")
    p_reanalyze.set_defaults(func=_cmd_reanalyze)

    # --- duplicates ---
    p_duplicates = subparsers.add_parser(
        "duplicates", parents=[identity], help="Batch duplicate check (1-20 ids)",
    )
    p_duplicates.add_argument("document_ids", nargs="+", help="Stored document ids")
    p_duplicates.add_argument("--tolerance", type=int, default=None)
    p_duplicates.add_argument("--include-archived", action="store_true")
    p_duplicates.set_defaults(func=_cmd_duplicates)

    return parser


async def _cmd_analyze(args: argparse.Namespace, settings: Any) -> int:
    """Analyze one local file."""
    from docintel.api.facade import analyze_document, quick_analysis, register_document
    from docintel.api.models import Caller, FileMeta
    from docintel.storage.store_factory import create_document_store

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return EXIT_FAILED

    file_bytes = file_path.read_bytes()
    mime_type = args.mime_type or mimetypes.guess_type(file_path.name)[0]
    if mime_type is None:
        raise InvalidInput(f"Cannot determine mime type of {file_path.name}; use --mime-type")

    meta = FileMeta(
        original_name=file_path.name,
        mime_type=mime_type,
        size=len(file_bytes),
        extension=file_path.suffix,
    )
    caller = Caller(company_id=args.company, user_id=args.user)
    store = create_document_store(settings)

    if args.quick:
        result = await quick_analysis(
            file_bytes, meta, args.context, caller.company_id, caller.user_id,
            store=store, settings=settings,
        )
    else:
        result = await analyze_document(
            file_bytes, meta, _options(args, settings), caller,
            store=store, settings=settings,
        )

    output: dict[str, Any] = {"result": result.model_dump(mode="json")}
    if args.save and result.recommended_action != "reject":
        document = await register_document(
            file_bytes, meta, caller, result, store, settings=settings
        )
        output["document_id"] = document.id
    _print_json(output)
    return EXIT_OK


async def _cmd_reanalyze(args: argparse.Namespace, settings: Any) -> int:
    """Re-analyze a stored document and persist the new fields."""
    from docintel.api.facade import reanalyze_document
    from docintel.api.models import Caller
    from docintel.storage.store_factory import create_document_store

    result = await reanalyze_document(
        args.document_id,
        _options(args, settings),
        Caller(company_id=args.company, user_id=args.user),
        store=create_document_store(settings),
        settings=settings,
    )
    _print_json({"document_id": args.document_id, "result": result.model_dump(mode="json")})
    return EXIT_OK


async def _cmd_duplicates(args: argparse.Namespace, settings: Any) -> int:
    """Batch duplicate check across stored documents."""
    from docintel.api.facade import detect_duplicates_across
    from docintel.api.models import Caller
    from docintel.storage.store_factory import create_document_store

    report = await detect_duplicates_across(
        args.document_ids,
        Caller(company_id=args.company, user_id=args.user),
        temporal_tolerance_days=args.tolerance,
        include_archived=args.include_archived,
        store=create_document_store(settings),
        settings=settings,
    )
    _print_json(report.model_dump(mode="json"))
    return EXIT_OK


def _options(args: argparse.Namespace, settings: Any) -> dict[str, Any]:
    return {
        "declared_context": args.context,
        "enable_duplicate_detection": not args.no_duplicates,
        "enable_relevance_analysis": not args.no_relevance,
        "enable_content_analysis": not args.no_content,
        "duplicate_scope": args.scope or settings.default_duplicate_scope,
        "temporal_tolerance_days": (
            args.tolerance if args.tolerance is not None
            else settings.default_temporal_tolerance_days
        ),
        "strict_relevance": args.strict,
        "include_archived": args.include_archived,
    }


def _print_json(payload: dict[str, Any]) -> None:
    import json

    print(json.dumps(payload, indent=2, default=str))


def _setup_logging(settings: Any, verbose: bool) -> None:
    """Configure logging for CLI usage (stderr, settings format)."""
    from docintel.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )


if __name__ == "__main__":
    sys.exit(main())
