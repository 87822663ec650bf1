"""Language directories: a folder path plus the PO file names inside it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePath

from pomerge.errors import InvalidLanguageDirectory

PO_SUFFIX = ".po"


def normalize_name(name: str | PurePath) -> str:
    """Key used to pair a target file with its reference file."""
    return PurePath(name).as_posix()


@dataclass(frozen=True)
class LanguageFiles:
    """A set of PO files relative to *path*."""
    path: Path
    files: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))
        object.__setattr__(self, "files", tuple(normalize_name(f) for f in self.files))

    @classmethod
    def from_directory(cls, path: str | Path, backup_suffix: str = ".bak",
                       with_backups: bool = False) -> LanguageFiles:
        """Collect every ``*.po`` file directly inside *path*.

        With *with_backups*, a file only present as a merge backup
        (``messages.po.bak``) is listed under its original name so it can be
        recovered.  Only target directories are ever merged into, so only
        they need this.
        """
        path = Path(path)
        if not path.is_dir():
            raise InvalidLanguageDirectory(f"{path} is not a directory")
        names = set()
        for p in path.iterdir():
            if not p.is_file():
                continue
            if p.suffix == PO_SUFFIX:
                names.add(p.name)
            elif with_backups and backup_suffix and p.name.endswith(PO_SUFFIX + backup_suffix):
                names.add(p.name[:-len(backup_suffix)])
        files = sorted(names)
        if not files:
            raise InvalidLanguageDirectory(f"{path} must be a valid language directory (no *.po files)")
        return cls(path=path, files=tuple(files))

    def only(self, names) -> LanguageFiles:
        """Restrict to *names*; unknown names are ignored."""
        wanted = {normalize_name(n) for n in names}
        return LanguageFiles(path=self.path, files=tuple(f for f in self.files if f in wanted))

    def resolve(self, name: str) -> Path:
        return self.path / name
