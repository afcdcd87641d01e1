#!/usr/bin/env python3
"""
Generate mdoc(7) manual pages from CAPI3REF comments in a C header.

Usage:
    python -m mkdocs_capi3ref.cli sqlite3.h -p man/
    python -m mkdocs_capi3ref.cli -n < sqlite3.h > all.3
    python -m mkdocs_capi3ref.cli -N sqlite3.h
"""

import argparse
import logging
import sys

from .output import write_manpages
from .parser import ParseError, parse_file, parse_lines
from .postprocess import postprocess_all
from .renderer import RenderConfig

log = logging.getLogger("mkdocs.plugins.capi3ref")


def build_parser():
    p = argparse.ArgumentParser(
        prog="capi3ref", description="Convert CAPI3REF header comments into mdoc(7) manuals"
    )
    p.add_argument("file", nargs="?", help="C header to read (default: standard input)")
    p.add_argument(
        "-n", dest="single", action="store_true", help="Write all pages to standard output"
    )
    p.add_argument(
        "-N", dest="names_only", action="store_true", help="Only print the names of the pages"
    )
    p.add_argument(
        "-p", dest="prefix", default=".", help="Output directory for pages (default: .)"
    )
    p.add_argument("-v", dest="verbose", action="store_true", help="Report unresolved references")
    p.add_argument(
        "--include",
        default="sqlite3.h",
        help="Header named in each SYNOPSIS (default: sqlite3.h, empty to omit)",
    )
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        format="%(message)s",
        level=logging.INFO if args.verbose else logging.WARNING,
    )

    try:
        if args.file:
            result = parse_file(args.file)
        else:
            result = parse_lines(sys.stdin, "<stdin>")
    except ParseError:
        # Already reported where the scan stopped.
        return 1
    except OSError as exc:
        log.error("capi3ref: %s: %s", args.file, exc)
        return 1

    if not result.complete:
        return 1

    single = args.single or args.names_only
    index = postprocess_all(result.definitions, prefix=args.prefix, filename_only=single)
    cfg = RenderConfig(include=args.include, verbose=args.verbose)
    written = write_manpages(
        result.definitions,
        index,
        cfg,
        stream=sys.stdout if single else None,
        names_only=args.names_only,
    )
    log.info(
        "capi3ref: %s: %d lines, %d definitions, %d pages",
        result.filename,
        result.lines,
        len(result.definitions),
        len(written),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
