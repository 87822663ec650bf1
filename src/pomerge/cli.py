"""Command line entry point."""

from __future__ import annotations

import argparse
import codecs
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pomerge import __version__
from pomerge.errors import InvalidLanguageDirectory
from pomerge.parsers.po_lines import SearchMode
from pomerge.parsers.po_parser import po_coverage
from pomerge.services.languages import LanguageFiles
from pomerge.services.pipeline import RunReport, merge_translations
from pomerge.services.settings import Settings

log = logging.getLogger("pomerge")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pomerge",
        description="Fill untranslated PO entries from another language that already has them.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pomerge locales/fr-CA locales/fr-FR                # Fill empty msgstr lines
  pomerge locales/fr-CA locales/fr-FR --ends-with "#fuzzy"
  pomerge locales/fr-CA locales/fr-FR --dry-run --report plan.json
        """
    )
    parser.add_argument("target", help="Directory with the PO files to fill in")
    parser.add_argument("reference", help="Directory with the PO files to take translations from")
    parser.add_argument("--file", "-f", action="append", dest="files", metavar="NAME",
                        help="Only merge this file name (repeatable)")
    parser.add_argument("--ends-with", default=None, metavar="SUFFIX",
                        help="Also treat translations ending with SUFFIX as missing")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be merged without changing any file")
    parser.add_argument("--report", metavar="FILE",
                        help="Write the run record as JSON to FILE")
    parser.add_argument("--stats", action="store_true",
                        help="Print translation coverage of each merged file")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Debug output")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only warnings and errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _log_level(args: argparse.Namespace, settings: Settings) -> int:
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.WARNING
    return getattr(logging, str(settings["log_level"]).upper(), logging.INFO)


def _print_summary(report: RunReport, stats: bool) -> None:
    for result in report.results:
        if result.ok:
            print(f"  ✓ {result.file}: {result.substitutions} translations merged")
            if stats:
                try:
                    data = po_coverage(result.path, report.search_mode)
                except (OSError, ValueError) as e:
                    log.warning("Cannot compute statistics for %s: %s", result.path, e)
                    continue
                print(f"      {data.summary()}")
        else:
            print(f"  ✗ {result.path}: {result.error}")
    for name, error in report.failures.items():
        print(f"  ✗ {name}: {error}")
    for name, error in report.reference_failures.items():
        print(f"  ✗ reference {name}: {error}")
    for name in report.skipped:
        print(f"  - {name}: no reference file, left untouched")
    if report.dry_run:
        for entry in report.diff:
            print(f"  {entry.file}: {entry.resolved_count} of {len(entry.replacements)} "
                  f"missing translations available")


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.get()
    logging.basicConfig(level=_log_level(args, settings), format="%(name)s: %(message)s")

    try:
        codecs.lookup(settings["encoding"])
    except (LookupError, TypeError):
        log.error("Unknown encoding %r in settings", settings["encoding"])
        return 2

    suffix = settings.backup_suffix
    try:
        target = LanguageFiles.from_directory(args.target, suffix, with_backups=True)
        reference = LanguageFiles.from_directory(args.reference, suffix)
    except InvalidLanguageDirectory as e:
        log.error("%s", e)
        return 2
    if args.files:
        target = target.only(args.files)
        reference = reference.only(args.files)
        if not target.files:
            log.error("None of %s found in %s", ", ".join(args.files), args.target)
            return 2

    ends_with = args.ends_with if args.ends_with is not None else settings["ends_with"]
    report = merge_translations(target, reference, SearchMode.from_value(ends_with),
                                dry_run=args.dry_run, settings=settings)

    _print_summary(report, args.stats and not args.dry_run)
    if args.report:
        Path(args.report).write_text(json.dumps(report.to_dict(), ensure_ascii=False, indent=2), "utf-8")
        log.info("Run record written to %s", args.report)

    if not report.ok:
        return 1
    if report.dry_run:
        print(f"Dry run: {len(report.diff)} files would be merged")
        return 0
    print(f"Done: {report.substitutions} translations merged in {len(report.succeeded)} files")
    return 0


if __name__ == "__main__":
    sys.exit(main())
