"""Run a whole merge: recover, scan and index, diff, then rewrite.

Scanning the targets and indexing the references run as one batch of
concurrent per-file tasks.  The diff only starts once that batch is done,
then each planned file is merged on its own.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from pomerge.errors import MergeError
from pomerge.parsers.po_lines import MissingEntry, SearchMode
from pomerge.services.diff import DiffEntry, build_diff
from pomerge.services.events import EventCallback
from pomerge.services.extractor import extract_missing
from pomerge.services.index import build_indexes
from pomerge.services.languages import LanguageFiles
from pomerge.services.merge import FileResult, merge_all, recover_all
from pomerge.services.settings import Settings

log = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Everything a run found and did, per file."""
    target: LanguageFiles
    reference: LanguageFiles
    search_mode: SearchMode
    dry_run: bool = False
    recovered: list[str] = field(default_factory=list)
    missing: dict[str, tuple[MissingEntry, ...]] = field(default_factory=dict)
    available: dict[str, int] = field(default_factory=dict)
    diff: list[DiffEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    results: list[FileResult] = field(default_factory=list)
    failures: dict[str, MergeError] = field(default_factory=dict)
    reference_failures: dict[str, MergeError] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[FileResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> dict[str, MergeError]:
        failed = dict(self.failures)
        failed.update({r.file: r.error for r in self.results if not r.ok})
        return failed

    @property
    def ok(self) -> bool:
        return not self.failed and not self.reference_failures

    @property
    def substitutions(self) -> int:
        return sum(r.substitutions for r in self.results)

    def to_dict(self) -> dict:
        return {
            "target": {"path": str(self.target.path), "files": list(self.target.files)},
            "reference": {"path": str(self.reference.path), "files": list(self.reference.files)},
            "searchMode": {"endsWith": self.search_mode.ends_with} if self.search_mode.ends_with else {},
            "dryRun": self.dry_run,
            "recovered": list(self.recovered),
            "missing": [{"file": name, "messages": [e.identifier for e in entries]}
                        for name, entries in self.missing.items()],
            "available": [{"file": name, "count": count} for name, count in self.available.items()],
            "diff": [d.to_dict() for d in self.diff],
            "skipped": list(self.skipped),
            "results": [r.to_dict() for r in self.results],
            "failures": {name: str(e) for name, e in self.failed.items()},
            "referenceFailures": {name: str(e) for name, e in self.reference_failures.items()},
        }


async def run_merge(target: LanguageFiles, reference: LanguageFiles,
                    search_mode: SearchMode = SearchMode(), dry_run: bool = False,
                    on_event: Optional[EventCallback] = None,
                    settings: Optional[Settings] = None) -> RunReport:
    """Fill the missing translations of *target* from *reference*.

    With *dry_run* the plan is built and reported but no file is touched,
    stray backups included.
    """
    settings = settings or Settings.get()
    suffix = settings.backup_suffix
    encoding = settings["encoding"]

    report = RunReport(target=target, reference=reference,
                       search_mode=search_mode, dry_run=dry_run)

    scan_target = target
    if not dry_run:
        report.recovered, report.failures = recover_all(target, suffix, on_event)
        scan_target = LanguageFiles(target.path, tuple(f for f in target.files if f not in report.failures))

    extraction, indexing = await asyncio.gather(
        extract_missing(scan_target, search_mode, encoding, on_event),
        build_indexes(reference, encoding, on_event),
    )
    report.missing = extraction.missing
    report.failures.update(extraction.failures)
    report.available = {name: len(index) for name, index in indexing.indexes.items()}
    report.reference_failures = dict(indexing.failures)

    log.info("Building diff")
    report.diff = build_diff(extraction.missing, indexing.indexes, on_event)
    planned = {d.file for d in report.diff}
    report.skipped = [name for name in extraction.missing if name not in planned]

    if dry_run:
        log.info("Dry run, %d files left untouched", len(report.diff))
        return report

    report.results = await merge_all(target, report.diff, suffix, encoding, on_event)
    for result in report.results:
        if result.ok:
            log.info("%s: %d translations merged", result.file, result.substitutions)
        else:
            log.error("%s: %s", result.path, result.error)
    return report


def merge_translations(target: LanguageFiles, reference: LanguageFiles,
                       search_mode: SearchMode = SearchMode(), dry_run: bool = False,
                       on_event: Optional[EventCallback] = None,
                       settings: Optional[Settings] = None) -> RunReport:
    """Blocking wrapper around :func:`run_merge`."""
    return asyncio.run(run_merge(target, reference, search_mode, dry_run, on_event, settings))
