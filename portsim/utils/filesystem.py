#!filepath: portsim/utils/filesystem.py
from pathlib import Path

from portsim.utils.logger import logs


class FileSystem:
    """
    回测输出目录工具
    - 自动创建目录
    - 安全写入文件（临时文件 → rename）
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] 创建目录: {p}")
        return p

    @staticmethod
    def file_exists(path: str | Path) -> bool:
        return Path(path).exists()

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> None:
        """
        原子写入（避免部分写入导致文件损坏）
            1) 先写入 tmp 文件
            2) rename → 正式文件
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        tmp_path = path.with_suffix(path.suffix + ".tmp")

        with open(tmp_path, "wb") as f:
            f.write(data)

        tmp_path.replace(path)
        logs.debug(f"[FS] 原子写入完成: {path}")

    @staticmethod
    def safe_write_text(path: str | Path, text: str) -> None:
        FileSystem.safe_write(path, text.encode("utf-8"))
