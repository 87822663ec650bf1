"""Errors raised while scanning and rewriting PO files."""

from __future__ import annotations

from pathlib import Path


class MergeError(Exception):
    pass


class FileReadError(MergeError):
    """A PO file could not be opened or read."""

    def __init__(self, path: str | Path, cause: BaseException | str):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Error reading {self.path}: {cause}")


class FileWriteError(MergeError):
    """Rewriting a target file failed; the backup is left in place."""

    def __init__(self, path: str | Path, cause: BaseException | str):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Error writing {self.path}: {cause}")


class InvalidLanguageDirectory(MergeError):
    pass


class StaleBackupError(MergeError):
    """The file was rewritten but its backup could not be removed.

    A later run would restore the backup over the merged file, so the
    leftover has to be dealt with by hand.
    """

    def __init__(self, backup: str | Path, cause: BaseException | str, substitutions: int = 0):
        self.path = Path(backup)
        self.cause = cause
        self.substitutions = substitutions
        super().__init__(f"Merged, but cannot delete backup {self.path}: {cause}")
