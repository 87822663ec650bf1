"""Tests for rewriting target files."""
import asyncio

import pytest

from pathlib import Path

from pomerge.errors import FileReadError, FileWriteError, StaleBackupError
from pomerge.services.diff import DiffEntry, Replacement
from pomerge.services.languages import LanguageFiles
from pomerge.services.merge import (
    MergeState, Substituter, backup_path, merge_all, merge_file, recover_backup,
)


def _plan(file, *items):
    return DiffEntry(file, tuple(Replacement(*item) for item in items))


# ── Substitution state machine ───────────────────────────────────

class TestSubstituter:
    def test_replaces_line_after_identifier(self):
        sub = Substituter([Replacement('msgid "a"', 'msgstr "A"', 0)])
        assert sub.feed(0, 'msgid "a"') == 'msgid "a"'
        assert sub.state is MergeState.PENDING_SUBSTITUTION
        assert sub.feed(1, 'msgstr ""') == 'msgstr "A"'
        assert sub.state is MergeState.IDLE
        assert sub.count == 1

    def test_next_line_replaced_whatever_it_holds(self):
        sub = Substituter([Replacement('msgid "a"', 'msgstr "A"', 0)])
        sub.feed(0, 'msgid "a"')
        assert sub.feed(1, "# unexpected") == 'msgstr "A"'

    def test_unresolved_never_written(self):
        sub = Substituter([Replacement('msgid "a"', 'msgstr ""', 0, resolved=False)])
        sub.feed(0, 'msgid "a"')
        assert sub.feed(1, 'msgstr "draft#fuzzy"') == 'msgstr "draft#fuzzy"'
        assert sub.count == 0

    def test_position_must_match(self):
        sub = Substituter([Replacement('msgid "a"', 'msgstr "A"', 3)])
        sub.feed(0, 'msgid "a"')
        assert sub.feed(1, 'msgstr "keep"') == 'msgstr "keep"'

    def test_text_must_match(self):
        sub = Substituter([Replacement('msgid "a"', 'msgstr "A"', 0)])
        sub.feed(0, 'msgid "b"')
        assert sub.state is MergeState.IDLE


# ── Single file ──────────────────────────────────────────────────

class TestMergeFile:
    def test_hello_bonjour(self, write_po):
        path = write_po("fr_CA", "a.po", ['msgid "hello"', 'msgstr ""'])
        count = merge_file(path, _plan("a.po", ('msgid "hello"', 'msgstr "bonjour"', 0)))
        assert count == 1
        assert path.read_text() == 'msgid "hello"\nmsgstr "bonjour"\n'
        assert not backup_path(path).exists()

    def test_empty_plan_is_byte_identical(self, tmp_path):
        path = tmp_path / "a.po"
        original = b'# c\r\nmsgid "a"\r\nmsgstr ""\r\n\r\nmsgid "b"\nmsgstr "x"'
        path.write_bytes(original)
        assert merge_file(path, DiffEntry("a.po")) == 0
        assert path.read_bytes() == original

    def test_only_planned_lines_change(self, fixtures_dir, tmp_path):
        path = tmp_path / "messages.po"
        path.write_bytes((fixtures_dir / "fr_CA" / "messages.po").read_bytes())
        before = path.read_text().splitlines()
        merge_file(path, _plan("messages.po",
                               ('msgid "Hello"', 'msgstr "Bonjour"', 7),
                               ('msgid "Quit"', 'msgstr ""', 21, False)))
        after = path.read_text().splitlines()
        assert len(after) == len(before)
        changed = [i for i, (a, b) in enumerate(zip(before, after)) if a != b]
        assert changed == [8]
        assert after[8] == 'msgstr "Bonjour"'

    def test_duplicate_identifiers_positional(self, write_po):
        path = write_po("xx", "a.po", [
            'msgid "a"', 'msgstr "kept"', '', 'msgid "a"', 'msgstr "old#fuzzy"',
        ])
        merge_file(path, _plan("a.po", ('msgid "a"', 'msgstr "new"', 3)))
        assert path.read_text().splitlines() == [
            'msgid "a"', 'msgstr "kept"', '', 'msgid "a"', 'msgstr "new"',
        ]

    def test_keeps_crlf_on_substituted_line(self, write_po):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'], eol="\r\n")
        merge_file(path, _plan("a.po", ('msgid "a"', 'msgstr "A"', 0)))
        assert path.read_bytes() == b'msgid "a"\r\nmsgstr "A"\r\n'

    def test_keeps_non_ascii(self, write_po):
        path = write_po("xx", "a.po", ['msgid "Größe"', 'msgstr ""'])
        merge_file(path, _plan("a.po", ('msgid "Größe"', 'msgstr "Taille ✓"', 0)))
        assert path.read_text("utf-8").splitlines()[1] == 'msgstr "Taille ✓"'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError):
            merge_file(tmp_path / "nope.po", DiffEntry("nope.po"))

    def test_write_failure_keeps_backup(self, write_po, monkeypatch):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])
        original = path.read_bytes()

        def broken_open(*args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr("pomerge.services.merge.open", broken_open, raising=False)
        with pytest.raises(FileWriteError):
            merge_file(path, _plan("a.po", ('msgid "a"', 'msgstr "A"', 0)))
        assert backup_path(path).read_bytes() == original

    def test_undeletable_backup_is_an_error(self, write_po, monkeypatch):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])

        def broken_unlink(self, *args, **kwargs):
            raise PermissionError("busy")

        monkeypatch.setattr(Path, "unlink", broken_unlink)
        with pytest.raises(StaleBackupError) as exc:
            merge_file(path, _plan("a.po", ('msgid "a"', 'msgstr "A"', 0)))
        assert exc.value.substitutions == 1
        assert exc.value.path == backup_path(path)
        assert path.read_text() == 'msgid "a"\nmsgstr "A"\n'
        assert backup_path(path).exists()


# ── Interrupted runs ─────────────────────────────────────────────

class TestRecovery:
    def test_backup_is_source_when_both_exist(self, write_po):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""', 'msgid "b"', 'msgstr ""'])
        original = path.read_bytes()
        # Simulate a crash after the rename and a partial rewrite
        path.rename(backup_path(path))
        path.write_text('msgid "a"\nmsgstr "A"\n')

        merge_file(path, _plan("a.po", ('msgid "a"', 'msgstr "A"', 0)))
        assert path.read_text().splitlines() == ['msgid "a"', 'msgstr "A"', 'msgid "b"', 'msgstr ""']
        assert not backup_path(path).exists()
        assert len(path.read_bytes().splitlines()) == len(original.splitlines())

    def test_backup_only(self, write_po):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])
        path.rename(backup_path(path))
        merge_file(path, _plan("a.po", ('msgid "a"', 'msgstr "A"', 0)))
        assert path.read_text() == 'msgid "a"\nmsgstr "A"\n'

    def test_recover_backup(self, write_po):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])
        original = path.read_bytes()
        path.rename(backup_path(path))
        path.write_text("partial")
        assert recover_backup(path) is True
        assert path.read_bytes() == original
        assert not backup_path(path).exists()

    def test_recover_without_backup(self, write_po):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])
        assert recover_backup(path) is False

    def test_custom_suffix(self, tmp_path):
        assert backup_path(tmp_path / "a.po", ".orig").name == "a.po.orig"


# ── Batch ────────────────────────────────────────────────────────

class TestMergeAll:
    def test_failure_does_not_stop_siblings(self, write_po, tmp_path):
        write_po("xx", "good.po", ['msgid "a"', 'msgstr ""'])
        language = LanguageFiles(tmp_path / "xx", ("good.po", "gone.po"))
        diff = [
            _plan("good.po", ('msgid "a"', 'msgstr "A"', 0)),
            _plan("gone.po", ('msgid "a"', 'msgstr "A"', 0)),
        ]
        events = []
        results = {r.file: r for r in asyncio.run(merge_all(language, diff, on_event=events.append))}
        assert results["good.po"].ok and results["good.po"].substitutions == 1
        assert isinstance(results["gone.po"].error, FileReadError)
        assert sorted(e.kind for e in events) == ["failed", "merged"]

    def test_nothing_resolved_leaves_file_alone(self, write_po, tmp_path):
        path = write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])
        mtime = path.stat().st_mtime_ns
        language = LanguageFiles(tmp_path / "xx", ("a.po",))
        diff = [_plan("a.po", ('msgid "a"', 'msgstr ""', 0, False))]
        result, = asyncio.run(merge_all(language, diff))
        assert result.ok and result.substitutions == 0
        assert path.stat().st_mtime_ns == mtime

    def test_undeletable_backup_reported(self, write_po, tmp_path, monkeypatch):
        write_po("xx", "a.po", ['msgid "a"', 'msgstr ""'])

        def broken_unlink(self, *args, **kwargs):
            raise PermissionError("busy")

        monkeypatch.setattr(Path, "unlink", broken_unlink)
        language = LanguageFiles(tmp_path / "xx", ("a.po",))
        events = []
        result, = asyncio.run(merge_all(language, [_plan("a.po", ('msgid "a"', 'msgstr "A"', 0))],
                                        on_event=events.append))
        assert not result.ok
        assert isinstance(result.error, StaleBackupError)
        assert result.substitutions == 1
        assert [e.kind for e in events] == ["failed"]
