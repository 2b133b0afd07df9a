"""Tests for oasgen.codegen.vfs -- the in-memory file set and its commit."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from oasgen.codegen.vfs import VirtualFS, commit_vfs, normalize_path
from oasgen.exceptions import CommitError, InvalidPathError, VfsWriteConflict


class TestNormalizePath:
    """Canonical relative paths."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("src/index.ts", "src/index.ts"),
            ("src\\types\\index.ts", "src/types/index.ts"),
            ("./src//index.ts", "src/index.ts"),
            ("src/services/../index.ts", "src/index.ts"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "/etc/passwd", "C:\\temp\\x", "../outside", "a/../..", "."])
    def test_rejects(self, raw: str) -> None:
        with pytest.raises(InvalidPathError):
            normalize_path(raw)


class TestVirtualFS:
    """Write-once file storage."""

    def test_write_and_read(self) -> None:
        vfs = VirtualFS()
        key = vfs.write("src\\index.ts", "export {};\n")
        assert key == "src/index.ts"
        assert vfs.read("src/index.ts") == b"export {};\n"
        assert vfs.read_text("./src/index.ts") == "export {};\n"

    def test_bytes_content(self) -> None:
        vfs = VirtualFS()
        vfs.write("logo.bin", b"\x00\x01")
        assert vfs.read("logo.bin") == b"\x00\x01"

    def test_text_is_utf8(self) -> None:
        vfs = VirtualFS()
        vfs.write("a.txt", "caf\u00e9")
        assert vfs.read("a.txt") == "caf\u00e9".encode("utf-8")
        assert vfs.total_bytes() == 5

    def test_duplicate_write_conflicts(self) -> None:
        vfs = VirtualFS()
        vfs.write("src/index.ts", "a")
        with pytest.raises(VfsWriteConflict) as exc_info:
            vfs.write("src/./index.ts", "b")
        assert exc_info.value.path == "src/index.ts"
        assert vfs.read_text("src/index.ts") == "a"

    def test_membership(self) -> None:
        vfs = VirtualFS()
        vfs.write("a/b.ts", "")
        assert "a/b.ts" in vfs
        assert "a\\b.ts" in vfs
        assert "a/c.ts" not in vfs
        assert "/abs" not in vfs
        assert 42 not in vfs
        assert not vfs.contains("../x")

    def test_read_missing(self) -> None:
        with pytest.raises(KeyError):
            VirtualFS().read("missing.ts")

    def test_listing_is_sorted(self) -> None:
        vfs = VirtualFS()
        for path in ["z.ts", "a/b.ts", "m.ts"]:
            vfs.write(path, path)
        assert vfs.paths() == ["a/b.ts", "m.ts", "z.ts"]
        assert list(vfs) == vfs.paths()
        assert len(vfs) == 3
        assert [p for p, _ in vfs.files()] == vfs.paths()
        assert vfs.as_dict()["m.ts"] == b"m.ts"


class TestCommitVfs:
    """Staged commit to disk."""

    def _vfs(self) -> VirtualFS:
        vfs = VirtualFS()
        vfs.write("src/index.ts", "export {};\n")
        vfs.write("package.json", "{}\n")
        return vfs

    def test_writes_files(self, tmp_path: Path) -> None:
        out = tmp_path / "sdk"
        written = commit_vfs(self._vfs(), out)
        assert (out / "src" / "index.ts").read_text() == "export {};\n"
        assert (out / "package.json").read_text() == "{}\n"
        assert written == [out.resolve() / "package.json", out.resolve() / "src" / "index.ts"]

    def test_overwrites_existing_files(self, tmp_path: Path) -> None:
        out = tmp_path / "sdk"
        (out / "src").mkdir(parents=True)
        (out / "src" / "index.ts").write_text("old")
        (out / "keep.txt").write_text("untouched")
        commit_vfs(self._vfs(), out)
        assert (out / "src" / "index.ts").read_text() == "export {};\n"
        assert (out / "keep.txt").read_text() == "untouched"

    def test_staging_directory_removed(self, tmp_path: Path) -> None:
        commit_vfs(self._vfs(), tmp_path / "sdk")
        leftovers = [p.name for p in tmp_path.iterdir() if p.name.startswith(".oasgen-")]
        assert leftovers == []

    def test_empty_vfs(self, tmp_path: Path) -> None:
        assert commit_vfs(VirtualFS(), tmp_path / "sdk") == []
        assert (tmp_path / "sdk").is_dir()

    def test_staging_failure_touches_nothing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(path: Path, content: bytes) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("oasgen.codegen.vfs._stage_file", fail)
        out = tmp_path / "sdk"
        with pytest.raises(CommitError, match="stage") as exc_info:
            commit_vfs(self._vfs(), out)
        assert exc_info.value.written == []
        assert list(out.iterdir()) == []

    def test_move_failure_reports_written(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        real_replace = os.replace
        calls = []

        def flaky_replace(src, dst) -> None:
            calls.append(dst)
            if len(calls) == 2:
                raise OSError("permission denied")
            real_replace(src, dst)

        monkeypatch.setattr("oasgen.codegen.vfs.os.replace", flaky_replace)
        out = tmp_path / "sdk"
        with pytest.raises(CommitError) as exc_info:
            commit_vfs(self._vfs(), out)
        assert exc_info.value.written == [out.resolve() / "package.json"]
        leftovers = [p.name for p in tmp_path.iterdir() if p.name.startswith(".oasgen-")]
        assert leftovers == []

    def test_base_is_a_file(self, tmp_path: Path) -> None:
        target = tmp_path / "sdk"
        target.write_text("not a directory")
        with pytest.raises(CommitError):
            commit_vfs(self._vfs(), target)
