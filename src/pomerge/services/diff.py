"""Join missing entries against the reference indexes into a replacement plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from pomerge.parsers.po_lines import EMPTY_MSGSTR, MissingEntry
from pomerge.services.events import EventCallback, MISSING_REFERENCE, UNRESOLVED, emit
from pomerge.services.index import AvailableIndex

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Replacement:
    identifier: str
    translation: str
    line_number: int
    resolved: bool = True


@dataclass(frozen=True)
class DiffEntry:
    file: str
    replacements: tuple[Replacement, ...] = field(default_factory=tuple)

    @property
    def resolved_count(self) -> int:
        return sum(1 for r in self.replacements if r.resolved)

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "messages": [{r.identifier: r.translation} for r in self.replacements],
        }


def resolve(entry: MissingEntry, index: AvailableIndex,
            on_event: Optional[EventCallback] = None) -> Replacement:
    """Find the translation for one missing entry.

    No match, or a match that is itself untranslated, yields the empty
    placeholder marked unresolved so the merge leaves the line alone.
    """
    translation = index.lookup(entry.identifier)
    if translation is None or translation.rstrip() == EMPTY_MSGSTR:
        log.warning("Cannot find available translation for [%s] in [%s]", entry.identifier, entry.file)
        emit(on_event, UNRESOLVED, entry.file, entry.identifier)
        return Replacement(entry.identifier, EMPTY_MSGSTR, entry.line_number, resolved=False)
    return Replacement(entry.identifier, translation, entry.line_number)


def build_diff(missing: Mapping[str, Sequence[MissingEntry]],
               indexes: Mapping[str, AvailableIndex],
               on_event: Optional[EventCallback] = None) -> list[DiffEntry]:
    """Build one plan per target file, keeping the order entries were found in."""
    diff: list[DiffEntry] = []
    for name, entries in missing.items():
        if not entries:
            continue
        index = indexes.get(name)
        if index is None:
            log.warning("Cannot find [%s] file in available translations", name)
            emit(on_event, MISSING_REFERENCE, name)
            continue
        entry = DiffEntry(file=name, replacements=tuple(resolve(e, index, on_event) for e in entries))
        log.info("Found %d messages ready to translate in %s", entry.resolved_count, name)
        diff.append(entry)
    return diff
