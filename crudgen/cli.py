# File: crudgen/cli.py
"""
CrudGen - Command-Line Interface
=================================

Built with the standard-library ``argparse`` module.

Usage examples::

    # Interactive: asks for attributes, relations and confirmations
    crudgen Invoice

    # Non-interactive, from a description file, inside a Laravel project
    crudgen Invoice --from-file invoice.yaml --project ./shop

    # Show what would be written without touching the project
    crudgen Invoice -f invoice.yaml --dry-run -v

    # Replace existing files without asking
    crudgen Invoice -f invoice.yaml --force

Exit codes:
    0 - success
    1 - invalid entity description
    2 - planning error (cyclic relations, expansion depth, stub placeholders)
    3 - write error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from crudgen.exceptions import CrudGenError, DescriptionFileError
from crudgen.generator import (
    FAILURE_DESCRIPTION,
    FAILURE_PLANNING,
    FAILURE_WRITE,
    CrudGenerator,
    GenerationReport,
    ParsedDescription,
    load_config,
    load_description_file,
    parse_description,
)
from crudgen.models import GenerationConfig
from crudgen.prompts import ConsolePrompter, Prompter
from crudgen.utils import entity_name

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_EXIT_BY_STAGE: Dict[str, int] = {
    FAILURE_DESCRIPTION: EXIT_VALIDATION_ERROR,
    FAILURE_PLANNING: EXIT_GENERATION_ERROR,
    FAILURE_WRITE: EXIT_EXPORT_ERROR,
}


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root crudgen logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity < 0:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("crudgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="crudgen",
        description=(
            "CrudGen - CRUD scaffolding for Laravel.\n\n"
            "Generates the model, migration, controller, store/update "
            "requests and resource route of an entity."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s Invoice\n"
            "  %(prog)s Invoice -f invoice.yaml --project ./shop\n"
            "  %(prog)s Invoice -f invoice.yaml --dry-run -v\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"CrudGen v{__version__}",
    )

    parser.add_argument(
        "name",
        nargs="?",
        default=None,
        metavar="NAME",
        help="Entity name, e.g. Invoice (optional with --from-file).",
    )

    # --- Input ---
    input_group = parser.add_argument_group("input")
    input_group.add_argument(
        "-f", "--from-file",
        type=str,
        default=None,
        metavar="PATH",
        help="Description file (YAML or JSON) answering every question.",
    )
    input_group.add_argument(
        "-p", "--project",
        type=str,
        default=".",
        metavar="DIR",
        help="Root of the Laravel project (default: current directory).",
    )
    input_group.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (default: crudgen.yaml in the project root).",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    overwrite_group = behaviour_group.add_mutually_exclusive_group()
    overwrite_group.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Overwrite existing files without asking.",
    )
    overwrite_group.add_argument(
        "--no-overwrite",
        action="store_true",
        default=False,
        help="Never overwrite existing files.",
    )
    behaviour_group.add_argument(
        "--no-related",
        action="store_true",
        default=False,
        help="Do not offer to generate missing related entities.",
    )
    behaviour_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Plan and render everything but write nothing.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _overwrite_policy(args: argparse.Namespace) -> Optional[bool]:
    if args.force:
        return True
    if args.no_overwrite:
        return False
    return None


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.no_related:
        overrides["create_related"] = False
    return overrides


def _exit_code(report: GenerationReport) -> int:
    if report.success:
        return EXIT_SUCCESS
    return _EXIT_BY_STAGE.get(report.failure_stage or "", EXIT_GENERATION_ERROR)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(args: argparse.Namespace) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    project: Path = Path(args.project).resolve()
    if not project.is_dir():
        logger.error("Project directory not found: %s", project)
        return EXIT_INPUT_ERROR

    parsed: Optional[ParsedDescription] = None
    try:
        if args.from_file is not None:
            raw: Dict[str, Any] = load_description_file(Path(args.from_file))
            parsed = parse_description(raw, args.name)
        elif args.name is None:
            logger.error("An entity NAME is required without --from-file.")
            return EXIT_INPUT_ERROR
        else:
            entity_name(args.name)

        config: GenerationConfig = load_config(
            project,
            config_file=Path(args.config) if args.config else None,
            file_overrides=parsed.config if parsed else None,
            cli_overrides=_build_config_overrides(args),
        )
    except DescriptionFileError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR
    except CrudGenError as exc:
        logger.error("Invalid entity description: %s", exc)
        return EXIT_VALIDATION_ERROR

    prompter: Prompter = parsed.prompter if parsed else ConsolePrompter()
    generator: CrudGenerator = CrudGenerator(
        config,
        prompter,
        overwrite=_overwrite_policy(args),
        dry_run=args.dry_run,
    )

    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    try:
        if parsed is not None:
            report: GenerationReport = generator.generate(parsed.description)
        else:
            report = generator.generate_interactive(args.name)
    except EOFError:
        logger.error("Input ended before every question was answered.")
        return EXIT_INPUT_ERROR

    if not args.quiet:
        print(report.summary())

    return _exit_code(report)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    try:
        args: argparse.Namespace = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse exits with 2 on usage errors
        if exc.code not in (0, None):
            sys.exit(EXIT_INPUT_ERROR)
        raise

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    logger.info("Project: %s", Path(args.project).resolve())
    if args.from_file:
        logger.info("Description file: %s", args.from_file)

    exit_code: int = _run_generation(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("crudgen.cli loaded.")
