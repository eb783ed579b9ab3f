#!filepath: tests/utils/test_filesystem.py
from portsim.utils.filesystem import FileSystem


def test_ensure_dir(tmp_path):
    p = FileSystem.ensure_dir(tmp_path / "a" / "b")

    assert p.is_dir()
    assert FileSystem.ensure_dir(p) == p


def test_safe_write_text(tmp_path):
    target = tmp_path / "out" / "report.md"

    FileSystem.safe_write_text(target, "# 回测报告\n")

    assert target.read_text(encoding="utf-8") == "# 回测报告\n"
    assert FileSystem.file_exists(target)
    # 临时文件已被 rename
    assert not (tmp_path / "out" / "report.md.tmp").exists()


def test_safe_write_overwrites(tmp_path):
    target = tmp_path / "x.bin"
    FileSystem.safe_write(target, b"1")
    FileSystem.safe_write(target, b"22")

    assert target.read_bytes() == b"22"
