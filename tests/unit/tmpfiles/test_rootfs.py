"""Unit tests for RootDir.

Tests root-relative path mapping, error wrapping, mount detection,
removal semantics and atomic file replacement.
"""

import stat
from pathlib import Path, PurePosixPath
from typing import IO
from unittest.mock import patch

import pytest
from var2tmpfiles.tmpfiles.errors import TmpfilesIOError
from var2tmpfiles.tmpfiles.rootfs import RootDir, parse_mountinfo


class TestHostPath:
    """Tests for RootDir.host_path()."""

    def test_relative(self, tmp_path: Path) -> None:
        """Relative paths are joined onto the root."""
        assert RootDir(tmp_path).host_path("var/lib") == tmp_path / "var/lib"

    def test_absolute(self, tmp_path: Path) -> None:
        """Absolute paths are taken relative to the root, never the host."""
        assert RootDir(tmp_path).host_path(PurePosixPath("/var")) == tmp_path / "var"


class TestMetadata:
    """Tests for lstat-based queries."""

    def test_missing_is_none(self, tmp_path: Path) -> None:
        """A missing path has no metadata and does not exist."""
        rootfs = RootDir(tmp_path)
        assert rootfs.symlink_metadata_optional("nope") is None
        assert rootfs.try_exists("nope") is False

    def test_dangling_symlink_exists(self, tmp_path: Path) -> None:
        """A dangling symlink exists; its target is not followed."""
        (tmp_path / "link").symlink_to("/does/not/exist")
        rootfs = RootDir(tmp_path)
        assert rootfs.try_exists("link") is True
        assert stat.S_ISLNK(rootfs.symlink_metadata("link").st_mode)

    def test_read_link_unresolved(self, tmp_path: Path) -> None:
        """read_link() returns the stored target text."""
        (tmp_path / "link").symlink_to("../")
        assert RootDir(tmp_path).read_link("link") == "../"

    def test_plain_directory_not_mount_point(self, tmp_path: Path) -> None:
        """A subdirectory on the same filesystem is not a mount point."""
        (tmp_path / "var").mkdir()
        assert RootDir(tmp_path).is_mount_point("var") is False

    def test_errors_are_wrapped(self, tmp_path: Path) -> None:
        """OSError becomes TmpfilesIOError naming the relative path."""
        with pytest.raises(TmpfilesIOError) as exc_info:
            RootDir(tmp_path).read_dir("var")
        assert exc_info.value.path == PurePosixPath("var")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)


class TestMountPoints:
    """Tests for mount point detection."""

    def test_parse_mountinfo(self) -> None:
        """The fifth column is collected and octal escapes are decoded."""
        text = (
            "22 1 0:21 / / rw,relatime shared:1 - ext4 /dev/sda1 rw\n"
            "35 22 0:31 / /var/lib/with\\040space rw shared:2 - tmpfs tmpfs rw\n"
            "36 22 8:1 /srv/data /var/mnt rw shared:3 - ext4 /dev/sda1 rw\n"
            "\n"
        )
        assert parse_mountinfo(text) == frozenset({"/", "/var/lib/with space", "/var/mnt"})

    def test_bind_mount_on_same_filesystem(self, tmp_path: Path) -> None:
        """A directory listed in the mount table is a mount point on the same device."""
        (tmp_path / "var/mnt").mkdir(parents=True)
        rootfs = RootDir(tmp_path)
        bound = frozenset({str((tmp_path / "var/mnt").resolve())})

        with patch.object(RootDir, "mount_points", return_value=bound):
            assert rootfs.is_mount_point("var/mnt") is True
            assert rootfs.is_mount_point("var") is False

    def test_mount_table_read_once(self, tmp_path: Path) -> None:
        """The kernel table is read on first use and then reused."""
        table = tmp_path / "mountinfo"
        table.write_text(f"40 22 0:40 / {tmp_path.resolve()}/var rw - tmpfs tmpfs rw\n")
        (tmp_path / "var").mkdir()
        rootfs = RootDir(tmp_path)

        with patch("var2tmpfiles.tmpfiles.rootfs.MOUNTINFO", str(table)):
            assert rootfs.is_mount_point("var") is True
            table.unlink()
            assert rootfs.is_mount_point("var") is True

    def test_missing_mount_table(self, tmp_path: Path) -> None:
        """Without a readable table only the device comparison is used."""
        (tmp_path / "var").mkdir()
        rootfs = RootDir(tmp_path)
        with patch("var2tmpfiles.tmpfiles.rootfs.MOUNTINFO", str(tmp_path / "nope")):
            assert rootfs.mount_points() == frozenset()
            assert rootfs.is_mount_point("var") is False


class TestRemoval:
    """Tests for remove_file() and remove_dir_all()."""

    def test_remove_symlink_keeps_target(self, tmp_path: Path) -> None:
        """Removing a symlink leaves its target alone."""
        target = tmp_path / "target"
        target.mkdir()
        (tmp_path / "link").symlink_to(target)

        RootDir(tmp_path).remove_file("link")

        assert not (tmp_path / "link").is_symlink()
        assert target.is_dir()

    def test_remove_dir_all(self, tmp_path: Path) -> None:
        """Directories are removed with their content."""
        (tmp_path / "var/lib/deep").mkdir(parents=True)
        (tmp_path / "var/lib/deep/file").write_text("x")

        RootDir(tmp_path).remove_dir_all("var/lib")

        assert not (tmp_path / "var/lib").exists()
        assert (tmp_path / "var").is_dir()

    def test_remove_dir_all_stops_at_mount(self, tmp_path: Path) -> None:
        """A nested mount point and the directories above it survive."""
        (tmp_path / "var/lib/mnt").mkdir(parents=True)
        (tmp_path / "var/lib/mnt/precious").write_text("keep")
        (tmp_path / "var/lib/other/deep").mkdir(parents=True)
        (tmp_path / "var/lib/file").write_text("x")
        mount = frozenset({str((tmp_path / "var/lib/mnt").resolve())})

        with patch.object(RootDir, "mount_points", return_value=mount):
            removed = RootDir(tmp_path).remove_dir_all("var/lib")

        assert removed is False
        assert (tmp_path / "var/lib/mnt/precious").read_text() == "keep"
        assert sorted(p.name for p in (tmp_path / "var/lib").iterdir()) == ["mnt"]


class TestAtomicReplaceWith:
    """Tests for atomic_replace_with()."""

    def test_writes_file(self, tmp_path: Path) -> None:
        """Content and mode are applied, no temporary file remains."""

        def writer(f: IO[str]) -> None:
            f.write("d /var/x 0755 root root - -\n")

        out = RootDir(tmp_path).atomic_replace_with("out.conf", writer, mode=0o640)

        assert out == tmp_path / "out.conf"
        assert out.read_text() == "d /var/x 0755 root root - -\n"
        assert stat.S_IMODE(out.stat().st_mode) == 0o640
        assert [p.name for p in tmp_path.iterdir()] == ["out.conf"]

    def test_replaces_existing(self, tmp_path: Path) -> None:
        """An existing destination is replaced."""
        (tmp_path / "out.conf").write_text("old\n")
        RootDir(tmp_path).atomic_replace_with("out.conf", lambda f: f.write("new\n"))
        assert (tmp_path / "out.conf").read_text() == "new\n"

    def test_writer_failure_cleans_up(self, tmp_path: Path) -> None:
        """A failing writer leaves neither the destination nor a temp file."""

        def writer(f: IO[str]) -> None:
            f.write("partial")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            RootDir(tmp_path).atomic_replace_with("out.conf", writer)

        assert list(tmp_path.iterdir()) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing destination directory is an I/O error."""
        with pytest.raises(TmpfilesIOError):
            RootDir(tmp_path).atomic_replace_with("nodir/out.conf", lambda f: None)
