#!/usr/bin/env python3
"""jdocgen/main.py — CLI entry-point for the JSON-RPC documentation generator.

Usage examples
--------------
    # Generate Markdown documentation for a Go project
    python -m jdocgen generate ./server -o API_Documentation.md

    # Same, without the JSON-RPC 2.0 section and with legacy lookup
    python -m jdocgen generate ./server --omit-rfc --resolution permissive

    # Dump the resolved structure graph of every command
    python -m jdocgen graph ./server --format sexp

    # Report unresolved references and skipped functions
    python -m jdocgen check ./server --format json

Exit codes
----------
    0   Success.
    1   ``check`` reported at least one warning or error diagnostic.
    2   Infrastructure failure (bad directory, unreadable or
        untokenizable Go source, missing global tags).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple

from jdocgen import __version__
from jdocgen.config import DEFAULT_OUTPUT, GeneratorConfig
from jdocgen.diagnostics import Diagnostic, DiagnosticSeverity
from jdocgen.errors import CatalogError
from jdocgen.gosource import ProjectScan, collect_project
from jdocgen.graph import ResolutionResult, resolve_functions
from jdocgen.render import graph_to_dict, graph_to_sexp, render_markdown
from jdocgen.resolver import ResolutionMode

_log = logging.getLogger("jdocgen")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``jdocgen`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("jdocgen")
    root.setLevel(level)
    if any(getattr(h, "_jdocgen_cli", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler._jdocgen_cli = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def _resolve_dir(raw: str, label: str = "source directory") -> Path:
    """Resolve *raw* to an absolute directory ``Path``, raising on missing ones."""
    p = Path(raw).expanduser().resolve()
    if not p.is_dir():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_diagnostics(
    diagnostics: List[Diagnostic],
    fmt: str,
    stream: TextIO,
) -> int:
    """Write *diagnostics* to *stream* in the chosen format.

    Returns the count of ERROR and WARNING diagnostics.
    """
    serious = 0
    for diag in diagnostics:
        if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.WARNING):
            serious += 1
        if fmt == "json":
            stream.write(json.dumps(diag.to_dict()) + "\n")
        else:
            stream.write(str(diag) + "\n")

    if fmt == "summary":
        stream.write(f"\n--- {len(diagnostics)} diagnostic(s), "
                     f"{serious} warning(s) or error(s) ---\n")
    return serious


def _run_pipeline(config: GeneratorConfig) -> Tuple[ProjectScan, ResolutionResult]:
    """Collect the project, then resolve every command's structure graph."""
    for problem in config.validate():
        _log.error("Invalid configuration: %s", problem)
        raise SystemExit(EXIT_INFRA)
    try:
        scan = collect_project(config.source_dir, config)
    except CatalogError as exc:
        _log.error("Error parsing project: %s", exc)
        raise SystemExit(EXIT_INFRA) from exc
    result = resolve_functions(
        scan.catalog,
        scan.functions,
        config.resolution_mode,
        scan.diagnostics,
    )
    return scan, result


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_generate(args: argparse.Namespace) -> int:
    """Write the Markdown API documentation."""
    args.source_dir = str(_resolve_dir(args.source_dir))
    config = GeneratorConfig.from_args(args)
    scan, result = _run_pipeline(config)

    markdown = render_markdown(scan.project_info, result.functions, config.include_rfc)
    out = _open_output(config.output)
    try:
        out.write(markdown)
    finally:
        if out is not sys.stdout:
            out.close()
    if out is not sys.stdout:
        print(f"Documentation successfully generated at {config.output}")
    return EXIT_OK


def cmd_graph(args: argparse.Namespace) -> int:
    """Dump the resolved structure graph of every command."""
    args.source_dir = str(_resolve_dir(args.source_dir))
    config = GeneratorConfig.from_args(args)
    _, result = _run_pipeline(config)

    out = _open_output(args.output)
    try:
        if args.format == "json":
            out.write(json.dumps(graph_to_dict(result.functions), indent=2) + "\n")
        else:
            out.write(graph_to_sexp(result.functions))
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Report diagnostics without writing documentation."""
    args.source_dir = str(_resolve_dir(args.source_dir))
    config = GeneratorConfig.from_args(args)
    _, result = _run_pipeline(config)

    serious = _emit_diagnostics(result.diagnostics, args.format, sys.stdout)
    return EXIT_ERROR if serious > 0 else EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="jdocgen",
        description=(
            "jdocgen — JSON-RPC API documentation generator for Go.\n\n"
            "Reads @Command/@Parameter/@Result annotations from Go\n"
            "doc-comments and renders Markdown documentation."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              jdocgen generate ./server -o API_Documentation.md
              jdocgen graph ./server --format json
              jdocgen check ./server
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_source_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "source_dir",
            nargs="?",
            default=".",
            metavar="DIR",
            help="Directory to parse for Go source files (default: .).",
        )
        p.add_argument(
            "--resolution",
            choices=[m.value for m in ResolutionMode],
            default=ResolutionMode.STRICT.value,
            help=(
                "Type lookup mode: 'strict' resolves only through the referencing "
                "package and its imports; 'permissive' also accepts a unique "
                "same-named struct from any package (default: strict)."
            ),
        )
        p.add_argument(
            "--include-tests",
            action="store_true",
            help="Also scan _test.go files.",
        )

    # --- generate ----------------------------------------------------------
    p_generate = subparsers.add_parser(
        "generate",
        help="Generate Markdown API documentation.",
    )
    _add_source_args(p_generate)
    p_generate.add_argument(
        "-o", "--output",
        default=DEFAULT_OUTPUT,
        metavar="FILE",
        help=f'Output Markdown file ("-" for stdout, default: {DEFAULT_OUTPUT}).',
    )
    p_generate.add_argument(
        "--omit-rfc",
        action="store_true",
        help="Omit the JSON-RPC 2.0 specification section.",
    )
    p_generate.set_defaults(func=cmd_generate)

    # --- graph -------------------------------------------------------------
    p_graph = subparsers.add_parser(
        "graph",
        help="Dump the resolved structure graph of every command.",
    )
    _add_source_args(p_graph)
    p_graph.add_argument(
        "-f", "--format",
        choices=["sexp", "json"],
        default="sexp",
        help="Output format (default: sexp).",
    )
    p_graph.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p_graph.set_defaults(func=cmd_graph)

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Report unresolved types, skipped functions and other diagnostics.",
    )
    _add_source_args(p_check)
    p_check.add_argument(
        "-f", "--format",
        choices=["summary", "json"],
        default="summary",
        help="Output format (default: summary).",
    )
    p_check.set_defaults(func=cmd_check)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the jdocgen CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except OSError as exc:
        _log.error("I/O error: %s", exc)
        return EXIT_INFRA


# ---------------------------------------------------------------------------
# Module execution support
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
