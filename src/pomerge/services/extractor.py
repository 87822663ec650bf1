"""Collect untranslated entries from every target-language file."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from pomerge.errors import FileReadError
from pomerge.parsers.po_lines import DEFAULT_ENCODING, MissingEntry, SearchMode, scan_missing
from pomerge.services.events import EventCallback, FAILED, SCANNED, emit
from pomerge.services.languages import LanguageFiles

log = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    missing: dict[str, tuple[MissingEntry, ...]] = field(default_factory=dict)
    failures: dict[str, FileReadError] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(v) for v in self.missing.values())


def _collect(language: LanguageFiles, name: str, search_mode: SearchMode,
             encoding: str) -> tuple[MissingEntry, ...]:
    return tuple(scan_missing(language.resolve(name), search_mode, file=name, encoding=encoding))


async def extract_missing(language: LanguageFiles, search_mode: SearchMode = SearchMode(),
                          encoding: str = DEFAULT_ENCODING,
                          on_event: Optional[EventCallback] = None) -> ExtractionResult:
    """Scan every file of *language* concurrently for missing translations.

    Files without missing entries are left out of the result.  A file that
    cannot be read is recorded in ``failures`` without stopping the others.
    """
    log.info("Searching for missing translations in %s", language.path)

    async def one(name: str):
        try:
            return name, await asyncio.to_thread(_collect, language, name, search_mode, encoding)
        except FileReadError as e:
            return name, e

    result = ExtractionResult()
    for name, outcome in await asyncio.gather(*(one(n) for n in language.files)):
        if isinstance(outcome, FileReadError):
            log.error("%s", outcome)
            result.failures[name] = outcome
            emit(on_event, FAILED, name, str(outcome))
            continue
        if outcome:
            result.missing[name] = outcome
        log.info("Found %d missing translations in %s", len(outcome), name)
        emit(on_event, SCANNED, name, count=len(outcome))
    return result
