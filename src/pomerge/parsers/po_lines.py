"""Line scanner for PO files.

Works on raw line text instead of a full gettext parse: an identifier line
(``msgid "..."``) is remembered until the next ``msgstr`` line, and the
literal text of both lines is what gets collected.  Two files therefore only
agree on an identifier when they quote and escape it byte for byte the same.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from pomerge.errors import FileReadError

MSGID = "msgid "
MSGSTR = "msgstr "
HEADER_MSGID = 'msgid ""'
EMPTY_MSGSTR = 'msgstr ""'

DEFAULT_ENCODING = "utf-8"


class ScanState(enum.Enum):
    IDLE = "idle"
    PENDING_ID = "pending-id"
    HEADER = "header"


@dataclass(frozen=True)
class SearchMode:
    """Which translations still need work.

    An empty ``msgstr ""`` always does.  With *ends_with* set, a non-empty
    translation also does when it ends with that suffix, e.g. a fuzzy marker.
    """
    ends_with: str = ""

    @classmethod
    def from_value(cls, ends_with: Optional[str]) -> "SearchMode":
        return cls(ends_with=ends_with or "")

    def needs_work(self, line: str) -> bool:
        text = line.rstrip()
        if text == EMPTY_MSGSTR:
            return True
        if not self.ends_with:
            return False
        if text.endswith(self.ends_with):
            return True
        # Suffix inside the quoted value: msgstr "draft#fuzzy"
        return text.endswith('"') and text[:-1].endswith(self.ends_with)


@dataclass(frozen=True)
class MissingEntry:
    file: str
    identifier: str
    line_number: int  # 0-based position of the identifier line


@dataclass(frozen=True)
class IndexEntry:
    identifier: str
    translation: str


def read_lines(path: str | Path, encoding: str = DEFAULT_ENCODING) -> Iterator[tuple[str, str]]:
    """Yield ``(text, eol)`` for every line of *path*.

    The line ending is split off and returned separately so callers can write
    the line back exactly as it was read.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding=encoding, errors="surrogateescape", newline="") as fh:
            for raw in fh:
                text = raw.rstrip("\r\n")
                yield text, raw[len(text):]
    except (OSError, LookupError, UnicodeError) as e:
        raise FileReadError(path, e) from e


def scan_missing(path: str | Path, search_mode: SearchMode = SearchMode(),
                 file: Optional[str] = None,
                 encoding: str = DEFAULT_ENCODING) -> Iterator[MissingEntry]:
    """Yield the identifiers of *path* whose translation still needs work.

    Repeated identifiers are reported every time, in file order.
    """
    name = file if file is not None else Path(path).name
    state = ScanState.IDLE
    pending: Optional[tuple[str, int]] = None

    for number, (line, _eol) in enumerate(read_lines(path, encoding)):
        if line.startswith(HEADER_MSGID):
            state, pending = ScanState.HEADER, None
            continue
        if line.startswith(MSGID):
            state, pending = ScanState.PENDING_ID, (line, number)
            continue
        if line.startswith(MSGSTR):
            if state is ScanState.PENDING_ID and search_mode.needs_work(line):
                yield MissingEntry(file=name, identifier=pending[0], line_number=pending[1])
            state, pending = ScanState.IDLE, None


def scan_available(path: str | Path, encoding: str = DEFAULT_ENCODING) -> Iterator[IndexEntry]:
    """Yield every identifier of *path* with the translation line that follows it.

    Empty translations are yielded too; deciding what to do with them is up to
    the caller.
    """
    state = ScanState.IDLE
    pending: Optional[str] = None

    for line, _eol in read_lines(path, encoding):
        if line.startswith(HEADER_MSGID):
            state, pending = ScanState.HEADER, None
            continue
        if line.startswith(MSGID):
            state, pending = ScanState.PENDING_ID, line
            continue
        if line.startswith(MSGSTR):
            if state is ScanState.PENDING_ID:
                yield IndexEntry(identifier=pending, translation=line)
            state, pending = ScanState.IDLE, None
