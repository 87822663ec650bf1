"""Rewrite target PO files with the translations found by the diff step.

Each file is merged through a backup: the live file is renamed to
``<name>.bak``, the backup is streamed into a fresh file at the original
path, and the backup is deleted once every line has been written.  When a
run dies half way, the backup survives and the next run merges from it.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from pomerge.errors import FileReadError, FileWriteError, MergeError, StaleBackupError
from pomerge.parsers.po_lines import DEFAULT_ENCODING, read_lines
from pomerge.services.diff import DiffEntry, Replacement
from pomerge.services.events import EventCallback, FAILED, MERGED, RECOVERED, emit
from pomerge.services.languages import LanguageFiles

log = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


class MergeState(enum.Enum):
    IDLE = "idle"
    PENDING_SUBSTITUTION = "pending-substitution"


@dataclass
class FileResult:
    file: str
    path: Path
    substitutions: int = 0
    error: Optional[MergeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "path": str(self.path),
            "substitutions": self.substitutions,
            "error": str(self.error) if self.error else None,
        }


class Substituter:
    """Decides what to write for each line of a file being merged.

    After an identifier line whose position and text match a resolved
    replacement, the next line is replaced by the translation whatever it
    contains.  Every other line passes through.
    """

    def __init__(self, replacements: Iterable[Replacement]):
        self._plan = {r.line_number: r for r in replacements if r.resolved}
        self._pending: Optional[Replacement] = None
        self.state = MergeState.IDLE
        self.count = 0

    def feed(self, number: int, text: str) -> str:
        if self.state is MergeState.PENDING_SUBSTITUTION:
            translation = self._pending.translation
            self.state, self._pending = MergeState.IDLE, None
            self.count += 1
            return translation

        replacement = self._plan.get(number)
        if replacement is not None:
            if replacement.identifier == text:
                self.state, self._pending = MergeState.PENDING_SUBSTITUTION, replacement
            else:
                log.warning("Line %d no longer holds [%s], leaving it untouched",
                            number + 1, replacement.identifier)
        return text


def backup_path(path: str | Path, suffix: str = BACKUP_SUFFIX) -> Path:
    path = Path(path)
    return path.with_name(path.name + suffix)


def recover_backup(path: str | Path, suffix: str = BACKUP_SUFFIX) -> bool:
    """Put a backup left by an interrupted merge back in place of *path*.

    The backup always wins over the live file, which may be partially
    written.  Returns True when a backup was restored.
    """
    path = Path(path)
    backup = backup_path(path, suffix)
    if not backup.exists():
        return False
    log.warning("Restoring %s from interrupted merge backup %s", path, backup)
    try:
        backup.replace(path)
    except OSError as e:
        raise FileWriteError(path, e) from e
    return True


def merge_file(path: str | Path, entry: DiffEntry, suffix: str = BACKUP_SUFFIX,
               encoding: str = DEFAULT_ENCODING) -> int:
    """Apply *entry* to the file at *path*; returns the number of lines substituted.

    On failure the backup and the partially written file are both left on disk.
    """
    path = Path(path)
    backup = backup_path(path, suffix)

    if backup.exists():
        log.warning("Found backup %s, merging from it instead of %s", backup, path)
    else:
        try:
            path.rename(backup)
        except OSError as e:
            raise FileReadError(path, e) from e

    substituter = Substituter(entry.replacements)
    try:
        with open(path, "w", encoding=encoding, errors="surrogateescape", newline="") as out:
            for number, (text, eol) in enumerate(read_lines(backup, encoding)):
                out.write(substituter.feed(number, text) + eol)
    except (OSError, LookupError, UnicodeError) as e:
        log.error("Error writing in %s", path)
        raise FileWriteError(path, e) from e

    if substituter.state is MergeState.PENDING_SUBSTITUTION:
        log.warning("%s ends right after an identifier line, nothing substituted for it", path)

    try:
        backup.unlink()
    except OSError as e:
        log.error("Cannot delete %s: %s", backup, e)
        raise StaleBackupError(backup, e, substituter.count) from e

    log.info("%s merged!", path)
    return substituter.count


async def merge_all(language: LanguageFiles, diff: Iterable[DiffEntry],
                    suffix: str = BACKUP_SUFFIX, encoding: str = DEFAULT_ENCODING,
                    on_event: Optional[EventCallback] = None) -> list[FileResult]:
    """Merge every planned file concurrently; one file failing does not stop the rest."""

    async def one(entry: DiffEntry) -> FileResult:
        result = FileResult(file=entry.file, path=language.resolve(entry.file))
        if not entry.resolved_count:
            log.info("Nothing to merge in %s", entry.file)
            emit(on_event, MERGED, entry.file, count=0)
            return result
        try:
            result.substitutions = await asyncio.to_thread(
                merge_file, result.path, entry, suffix, encoding)
        except MergeError as e:
            log.error("Merging %s failed: %s", entry.file, e)
            if isinstance(e, StaleBackupError):
                result.substitutions = e.substitutions
            result.error = e
            emit(on_event, FAILED, entry.file, str(e))
            return result
        emit(on_event, MERGED, entry.file, count=result.substitutions)
        return result

    return list(await asyncio.gather(*(one(e) for e in diff)))


def recover_all(language: LanguageFiles, suffix: str = BACKUP_SUFFIX,
                on_event: Optional[EventCallback] = None) -> tuple[list[str], dict[str, MergeError]]:
    """Restore stray backups for every file of *language* before scanning it.

    Returns the names restored and the names whose backup could not be put back.
    """
    recovered: list[str] = []
    failures: dict[str, MergeError] = {}
    for name in language.files:
        try:
            restored = recover_backup(language.resolve(name), suffix)
        except MergeError as e:
            log.error("%s", e)
            failures[name] = e
            emit(on_event, FAILED, name, str(e))
            continue
        if restored:
            recovered.append(name)
            emit(on_event, RECOVERED, name)
    return recovered, failures
