"""Command-line interface: check VASP input files and print diagnostics."""

from __future__ import annotations

import argparse
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vaspsupport.errors import Diagnostic, Severity
from vaspsupport.formats import FileFormat, detect_format

CONFIG_NAME = "vasp-support.toml"


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_files: list[Path]
    file_format: FileFormat | None
    lint_poscar: bool
    lint_kpoints: bool
    lint_incar: bool
    sections: bool
    min_severity: Severity
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="vasp-support",
        description="Check VASP input files (POSCAR, KPOINTS, INCAR)",
    )
    p.add_argument("inputs", nargs="+", metavar="FILE", help="Files to check")
    p.add_argument(
        "-f",
        "--format",
        choices=["auto"] + [f.value for f in FileFormat],
        default="auto",
        help="File format (default: detect from file name)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    p.add_argument("--no-lint", action="store_true", help="Do not report diagnostics")
    p.add_argument(
        "--sections",
        action="store_true",
        default=None,
        help="Print the section title of each block",
    )
    p.add_argument(
        "--min-severity",
        choices=[s.value for s in Severity],
        default=None,
        help="Least severe diagnostics to report (default: hint)",
    )
    p.add_argument("--debug", action="store_true", help="Dump classified lines to stderr")
    return p


def parse_format_arg(s: str) -> FileFormat | None:
    """Parse a --format value; 'auto' means detect per file."""
    if s == "auto":
        return None
    try:
        return FileFormat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown file format: {s}") from None


def parse_severity_arg(s: str) -> Severity:
    try:
        return Severity(s)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid severity (expected error, warning or hint): {s}"
        ) from None


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def _config_bool(config: dict[str, Any], table: str, key: str, default: bool) -> bool:
    section = config.get(table)
    if isinstance(section, dict):
        value = section.get(key)
        if isinstance(value, bool):
            return value
    return default


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_files = [Path(p) for p in args.inputs]
    input_dir = input_files[0].parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    lint_poscar = _config_bool(config, "poscar", "linting", True)
    lint_kpoints = _config_bool(config, "kpoints", "linting", True)
    lint_incar = _config_bool(config, "incar", "linting", True)
    if args.no_lint:
        lint_poscar = lint_kpoints = lint_incar = False

    sections = _config_bool(config, "poscar", "code_lenses", False)
    if args.sections is not None:
        sections = args.sections

    # Minimum severity: config < CLI
    min_severity = Severity.HINT
    cfg_output = config.get("output")
    if isinstance(cfg_output, dict) and isinstance(cfg_output.get("min_severity"), str):
        min_severity = parse_severity_arg(cfg_output["min_severity"])
    if args.min_severity is not None:
        min_severity = parse_severity_arg(args.min_severity)

    return CliOptions(
        input_files=input_files,
        file_format=parse_format_arg(args.format),
        lint_poscar=lint_poscar,
        lint_kpoints=lint_kpoints,
        lint_incar=lint_incar,
        sections=sections,
        min_severity=min_severity,
        debug=args.debug,
    )


def check_source(
    path: Path,
    source: str,
    file_format: FileFormat,
    options: CliOptions,
) -> list[Diagnostic]:
    """Check one file, printing sections and debug output as requested."""
    from vaspsupport.debug import dump_lines
    from vaspsupport.incar import lint_incar
    from vaspsupport.kpoints import KpointsLine, parse_kpoints
    from vaspsupport.linting import lint_kpoints, lint_poscar
    from vaspsupport.poscar import PoscarLine, parse_poscar
    from vaspsupport.presentation import section_markers

    lines: list[PoscarLine] | list[KpointsLine] = []
    if file_format is FileFormat.INCAR:
        diagnostics = lint_incar(source) if options.lint_incar else []
    elif file_format is FileFormat.POSCAR:
        lines = parse_poscar(source)
        diagnostics = lint_poscar(lines) if options.lint_poscar else []
    else:
        lines = parse_kpoints(source)
        diagnostics = lint_kpoints(lines) if options.lint_kpoints else []

    if options.debug and lines:
        dump_lines(lines)
    if options.sections and lines:
        for marker in section_markers(lines):
            print(f"{path}:{marker.line}: {marker.title}")

    return [d for d in diagnostics if d.severity.rank <= options.min_severity.rank]


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except tomllib.TOMLDecodeError as exc:
        print(f"error: invalid config file: {exc}", file=sys.stderr)
        return 2

    exit_code = 0
    for path in options.input_files:
        file_format = options.file_format or detect_format(path.name)
        if file_format is None:
            print(
                f"error: cannot detect the format of {path} (use --format)",
                file=sys.stderr,
            )
            return 2

        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        except UnicodeDecodeError as exc:
            print(f"error: {path} is not valid UTF-8: {exc}", file=sys.stderr)
            return 2

        diagnostics = check_source(path, source, file_format, options)
        for diagnostic in diagnostics:
            print(diagnostic.format(source, str(path)), file=sys.stderr)
            if diagnostic.severity is Severity.ERROR:
                exit_code = 1

    return exit_code
