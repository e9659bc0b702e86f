import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .core import run_download, run_export
from .state import SessionFactory
from .types import DEFAULT_WORKERS, SourceError
from .ui import TerminalUI

PROG = "file-grabber"

USAGE = f"""File Grabber - file download utility

Usage:
  {PROG} dl [-workers=N] [-d|-debug] -from-url=<URL> -o=<output_dir>
  {PROG} dl [-workers=N] [-d|-debug] -from-file=<exported_file> -o=<output_dir>
  {PROG} dl [-workers=N] [-d|-debug] -from-html=<html_file> -o=<output_dir>
  {PROG} export [-d|-debug] -from-url=<URL> -o=<output_file>
  {PROG} export [-d|-debug] -from-file=<urls_file> -o=<output_file>
  {PROG} export [-d|-debug] -from-html=<html_file> -o=<output_file>

Commands:
  dl      Download files from URL, exported file, or HTML file
  export  Export downloadable URLs to a file

Flags:
  -workers=N       Number of concurrent workers (default: {DEFAULT_WORKERS})
  -from-url=URL    Source URL to parse for downloadable files
  -from-file=FILE  File containing URLs (for dl: exported file, for export: list of page URLs)
  -from-html=FILE  HTML file to parse for downloadable files
  -o=PATH          Output directory for downloads or output file for export
  -d, -debug       Enable debug mode (saves fetched HTML to debug.html)
  --timeout=S      Request timeout in seconds (default: none)
  --no-pretty      Disable coloured terminal output
"""

COMMANDS = ("dl", "export")
SOURCES = (("url", "from_url"), ("file", "from_file"), ("html", "from_html"))


def build_parser(command: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=f"{PROG} {command}",
        description="Download files" if command == "dl" else "Export downloadable URLs to a file",
    )
    if command == "dl":
        parser.add_argument(
            "-workers", "--workers",
            dest="workers",
            type=int,
            default=DEFAULT_WORKERS,
            help="Number of concurrent download workers",
        )
    parser.add_argument("-from-url", "--from-url", dest="from_url", default="", help="Page URL to parse")
    parser.add_argument(
        "-from-file",
        "--from-file",
        dest="from_file",
        default="",
        help="Exported file (dl) or list of page URLs (export)",
    )
    parser.add_argument("-from-html", "--from-html", dest="from_html", default="", help="Local HTML file to parse")
    parser.add_argument("-o", "--output", dest="output", default="", help="Output directory (dl) or file (export)")
    parser.add_argument(
        "-d", "-debug", "--debug",
        dest="debug",
        action="store_true",
        help="Save fetched HTML to debug.html",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--no-pretty", action="store_true", help="Disable pretty terminal output")
    return parser


def select_source(args: argparse.Namespace) -> tuple[str, str]:
    chosen = [(name, getattr(args, attr)) for name, attr in SOURCES if getattr(args, attr)]
    if not chosen:
        raise ValueError("One of -from-url, -from-file, or -from-html must be specified")
    if len(chosen) > 1:
        raise ValueError(
            "Cannot specify multiple sources. Use only one of -from-url, -from-file, or -from-html"
        )
    return chosen[0]


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in COMMANDS:
        if argv and argv[0] not in {"-h", "--help", "help"}:
            print(f"Unknown command: {argv[0]}")
        print(USAGE)
        return 0

    command = argv[0]
    args = build_parser(command).parse_args(argv[1:])

    try:
        source, value = select_source(args)
        if not args.output:
            raise ValueError("-o flag is required")
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    ui = TerminalUI(pretty=not args.no_pretty)
    sessions = SessionFactory()
    output = Path(args.output)
    try:
        if command == "dl":
            run_download(
                source,
                value,
                output,
                ui=ui,
                sessions=sessions,
                workers=args.workers,
                debug=args.debug,
                timeout=args.timeout,
            )
        else:
            run_export(
                source,
                value,
                output,
                ui=ui,
                sessions=sessions,
                debug=args.debug,
                timeout=args.timeout,
            )
    except SourceError as exc:
        ui.error(f"Error reading links from {source}: {exc}")
        return 1
    except OSError as exc:
        ui.error(f"Error writing output: {exc}")
        return 1
    finally:
        sessions.close()
    return 0
