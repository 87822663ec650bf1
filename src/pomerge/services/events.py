"""Structured progress events emitted during a merge run."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Callable, Optional

RECOVERED = "recovered"
SCANNED = "scanned"
INDEXED = "indexed"
UNRESOLVED = "unresolved"
MISSING_REFERENCE = "missing-reference"
MERGED = "merged"
FAILED = "failed"


@dataclass(frozen=True)
class MergeEvent:
    kind: str
    file: str
    detail: str = ""
    count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


EventCallback = Callable[[MergeEvent], None]


def emit(on_event: Optional[EventCallback], kind: str, file: str,
         detail: str = "", count: int = 0) -> None:
    if on_event is not None:
        on_event(MergeEvent(kind=kind, file=file, detail=detail, count=count))
