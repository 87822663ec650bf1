"""Translation coverage of a PO file, read with polib."""

from __future__ import annotations

import polib
from dataclasses import dataclass
from pathlib import Path

from pomerge.parsers.po_lines import SearchMode


@dataclass
class POCoverage:
    """How much of a file is translated, by the same rules a merge run uses."""
    path: Path
    total: int = 0
    translated: int = 0
    untranslated: int = 0
    needs_work: int = 0

    @property
    def percent_translated(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.translated / self.total * 100, 1)

    def summary(self) -> str:
        return (f"{self.translated}/{self.total} translated ({self.percent_translated}%), "
                f"{self.untranslated} empty, {self.needs_work} fuzzy")


def _needs_work(entry: polib.POEntry, search_mode: SearchMode) -> bool:
    # A run with a suffix marks drafts by the suffix, not by the "#, fuzzy" flag
    if search_mode.ends_with:
        return entry.msgstr.endswith(search_mode.ends_with)
    return "fuzzy" in entry.flags


def po_coverage(path: str | Path, search_mode: SearchMode = SearchMode()) -> POCoverage:
    """Count translated, empty and still-draft entries of *path*.

    Obsolete entries are left out.
    """
    path = Path(path)
    coverage = POCoverage(path=path)
    for entry in polib.pofile(str(path)):
        if entry.obsolete:
            continue
        coverage.total += 1
        if not entry.msgstr and not any(entry.msgstr_plural.values()):
            coverage.untranslated += 1
        elif _needs_work(entry, search_mode):
            coverage.needs_work += 1
        else:
            coverage.translated += 1
    return coverage
