"""Build identifier → translation lookups from the reference-language files."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from pomerge.errors import FileReadError
from pomerge.parsers.po_lines import DEFAULT_ENCODING, scan_available
from pomerge.services.events import EventCallback, FAILED, INDEXED, emit
from pomerge.services.languages import LanguageFiles

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailableIndex:
    file: str
    mapping: Mapping[str, str]

    def __len__(self) -> int:
        return len(self.mapping)

    def lookup(self, identifier: str) -> Optional[str]:
        return self.mapping.get(identifier)


@dataclass
class IndexResult:
    indexes: dict[str, AvailableIndex] = field(default_factory=dict)
    failures: dict[str, FileReadError] = field(default_factory=dict)


def build_index(language: LanguageFiles, name: str,
                encoding: str = DEFAULT_ENCODING) -> AvailableIndex:
    """Index one reference file; a repeated identifier keeps its last translation."""
    mapping: dict[str, str] = {}
    for entry in scan_available(language.resolve(name), encoding=encoding):
        mapping[entry.identifier] = entry.translation
    return AvailableIndex(file=name, mapping=MappingProxyType(mapping))


async def build_indexes(language: LanguageFiles, encoding: str = DEFAULT_ENCODING,
                        on_event: Optional[EventCallback] = None) -> IndexResult:
    """Index every file of *language* concurrently, keyed by file name."""
    log.info("Searching for available translations in %s", language.path)

    async def one(name: str):
        try:
            return name, await asyncio.to_thread(build_index, language, name, encoding)
        except FileReadError as e:
            return name, e

    result = IndexResult()
    for name, outcome in await asyncio.gather(*(one(n) for n in language.files)):
        if isinstance(outcome, FileReadError):
            log.error("%s", outcome)
            result.failures[name] = outcome
            emit(on_event, FAILED, name, str(outcome))
            continue
        result.indexes[name] = outcome
        log.info("Found %d available translations in %s", len(outcome), name)
        emit(on_event, INDEXED, name, count=len(outcome))
    return result
