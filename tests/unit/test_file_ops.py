from pathlib import Path

import pytest

from bronze.utils import file_ops


def test_safe_op_retries_then_succeeds() -> None:
    calls = {"count": 0}

    @file_ops.safe_op(max_retries=2, backoff_base_sec=0.001, backoff_cap_sec=0.001)
    def flaky() -> str:
        calls["count"] += 1
        if calls["count"] < 2:
            raise PermissionError("locked")
        return "ok"

    result = flaky()

    assert result.success is True
    assert result.value == "ok"
    assert result.retry_count == 1


def test_safe_op_does_not_retry_missing_file() -> None:
    calls = {"count": 0}

    @file_ops.safe_op(max_retries=3, backoff_base_sec=0.001, backoff_cap_sec=0.001)
    def missing() -> None:
        calls["count"] += 1
        raise FileNotFoundError("gone")

    result = missing()

    assert result.success is False
    assert isinstance(result.error, FileNotFoundError)
    assert calls["count"] == 1


def test_safe_op_reads_retry_settings_from_config() -> None:
    class _Config:
        def get(self, key, default=None):
            return {"retry.max_retries": 0}.get(key, default)

    calls = {"count": 0}

    @file_ops.safe_op(config=_Config())
    def broken() -> None:
        calls["count"] += 1
        raise OSError("disk")

    assert broken().success is False
    assert calls["count"] == 1


def test_delete_file(tmp_path: Path) -> None:
    target = tmp_path / "a-thumb.jpeg"
    target.write_bytes(b"data")

    assert file_ops.delete_file(target) == "DELETED"
    assert not target.exists()


def test_delete_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        file_ops.delete_file(tmp_path / "missing.jpeg")


def test_move_file_creates_parent(tmp_path: Path) -> None:
    src = tmp_path / "a-thumb.jpeg"
    dst = tmp_path / "small" / "a.jpeg"
    src.write_bytes(b"data")

    assert file_ops.move_file(src, dst) == "MOVED"
    assert dst.read_bytes() == b"data"
    assert not src.exists()


def test_move_file_refuses_existing_destination(tmp_path: Path) -> None:
    src = tmp_path / "a.jpeg"
    dst = tmp_path / "b.jpeg"
    src.write_bytes(b"src")
    dst.write_bytes(b"dst")

    with pytest.raises(FileExistsError):
        file_ops.move_file(src, dst)
    assert src.exists()
    assert dst.read_bytes() == b"dst"


def test_move_file_same_path_is_unchanged(tmp_path: Path) -> None:
    src = tmp_path / "a.jpeg"
    src.write_bytes(b"src")
    assert file_ops.move_file(src, src) == "UNCHANGED"
