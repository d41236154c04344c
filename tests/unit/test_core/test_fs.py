"""
test_fs.py - 원자적 쓰기 / 임시 디렉터리 정리 테스트
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.core.fs import atomic_write_bytes, remove_tree


class TestAtomicWriteBytes:
    """atomic_write_bytes 테스트."""

    def test_write_new_file(self, tmp_path: Path):
        target = tmp_path / "sub" / "demo-1.0.0.tgz"

        atomic_write_bytes(target, b"data")

        assert target.read_bytes() == b"data"

    def test_replace_existing(self, tmp_path: Path):
        target = tmp_path / "demo-1.0.0.tgz"
        target.write_bytes(b"old")

        atomic_write_bytes(target, b"new")

        assert target.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["demo-1.0.0.tgz"]

    def test_failure_keeps_old_file(self, tmp_path: Path):
        """replace 실패 → 기존 파일 유지, temp 파일 삭제."""
        target = tmp_path / "demo-1.0.0.tgz"
        target.write_bytes(b"old")

        with patch("src.core.fs.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write_bytes(target, b"new")

        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["demo-1.0.0.tgz"]

    def test_fsync_failure_still_writes(self, tmp_path: Path):
        target = tmp_path / "demo-1.0.0.tgz"

        with patch("src.core.fs.os.fsync", side_effect=OSError("unsupported")):
            atomic_write_bytes(target, b"data")

        assert target.read_bytes() == b"data"


class TestRemoveTree:
    """remove_tree 테스트."""

    def test_removes_nested(self, tmp_path: Path):
        root = tmp_path / "chart-abc"
        (root / "templates").mkdir(parents=True)
        (root / "templates" / "a.yaml").write_text("x")

        remove_tree(root)

        assert not root.exists()

    def test_missing_is_noop(self, tmp_path: Path):
        remove_tree(tmp_path / "missing")

    def test_failure_only_logs(self, tmp_path: Path, caplog):
        root = tmp_path / "chart-abc"
        root.mkdir()

        with patch("src.core.fs.shutil.rmtree", side_effect=OSError("busy")):
            remove_tree(root)

        assert "Failed to remove temporary directory" in caplog.text
        assert os.path.isdir(root)
