"""
归档工具

封装 7-Zip 命令行工具，提供解压（zip、tar.gz）与压缩（zip、7z）功能。
每次调用都是阻塞的子进程，直到工具退出才返回。
"""

import os
import shutil
import subprocess
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence, Union

from ..utils.logging import debug, LogStage
from ..utils.paths import remove_path, tmp_name
from .build_context import ArchiverError, ToolNotFoundError, UnknownExtensionError

# 7-Zip 退出码：2 表示致命错误（通常是路径不存在）
EXIT_FATAL = 2

SEVEN_ZIP_CANDIDATES = ("7za", "7z", "7zz")


def find_archiver() -> str:
    """定位 7-Zip 可执行文件

    优先使用环境变量 NWPACK_7ZA，其次在 PATH 中查找。

    Raises:
        ToolNotFoundError: 找不到 7-Zip
    """
    explicit = os.environ.get("NWPACK_7ZA")
    if explicit:
        return explicit

    for name in SEVEN_ZIP_CANDIDATES:
        found = shutil.which(name)
        if found:
            return found

    raise ToolNotFoundError("找不到 7-Zip（7za / 7z / 7zz），请安装后重试或设置 NWPACK_7ZA")


class ArchiveTool:
    """7-Zip 包装器"""

    def __init__(self, executable: Optional[str] = None):
        self._executable = executable

    @property
    def executable(self) -> str:
        if self._executable is None:
            self._executable = find_archiver()
        return self._executable

    def _run(self, args: Sequence[str], cwd: Optional[Path] = None) -> int:
        """运行 7-Zip 并返回退出码"""
        cmd = [self.executable, *args]
        debug(f"执行: {' '.join(cmd)} (cwd={cwd})", stage=LogStage.ARCHIVE)
        completed = subprocess.run(cmd, cwd=cwd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        return completed.returncode

    def extract(self, archive: Union[str, Path], dest: Optional[Union[str, Path]] = None, overwrite: bool = False) -> Path:
        """解压单层归档

        Args:
            archive: 归档路径
            dest: 输出目录，默认为归档所在目录
            overwrite: 是否覆盖已存在的文件

        Returns:
            Path: 输出目录

        Raises:
            ArchiverError: 7-Zip 执行失败
        """
        archive = Path(archive).resolve()
        dest = Path(dest).resolve() if dest else archive.parent

        code = self._run(["x", "-y", f"-ao{'a' if overwrite else 's'}", f"-o{dest}", str(archive)])

        if code == EXIT_FATAL:
            raise ArchiverError(code, f"解压失败，路径不存在: {archive}")
        if code != 0:
            raise ArchiverError(code)

        return dest

    def extract_tar_gz(self, archive: Union[str, Path], dest: Optional[Union[str, Path]] = None, overwrite: bool = False) -> Path:
        """解压 tar.gz：先解出中间 tar，再解 tar，最后删除中间文件"""
        archive = Path(archive).resolve()
        dest = Path(dest).resolve() if dest else archive.parent

        self.extract(archive, dest, overwrite)

        tar = dest / archive.name[:-len(".gz")]
        try:
            self.extract(tar, dest, overwrite)
        finally:
            remove_path(tar)

        return dest

    def extract_generic(self, archive: Union[str, Path], dest: Optional[Union[str, Path]] = None, overwrite: bool = False) -> Path:
        """按扩展名选择解压方式

        Raises:
            UnknownExtensionError: 既不是 .zip 也不是 .tar.gz
        """
        name = Path(archive).name.lower()

        if name.endswith(".zip"):
            return self.extract(archive, dest, overwrite)
        if name.endswith(".tar.gz"):
            return self.extract_tar_gz(archive, dest, overwrite)

        raise UnknownExtensionError(archive)

    def compress(self, source_dir: Union[str, Path], files: List[str], archive_type: str, archive: Union[str, Path]) -> Path:
        """压缩文件列表

        成员列表写入临时文件，避免命令行长度限制；
        工作目录设为 source_dir，使归档内保存相对路径。

        Args:
            source_dir: 源根目录
            files: 相对 source_dir 的成员路径
            archive_type: zip 或 7z
            archive: 输出归档路径

        Returns:
            Path: 归档路径

        Raises:
            ArchiverError: 7-Zip 执行失败
        """
        archive = Path(archive).resolve()
        list_file = tmp_name(prefix="nwpack_list_", suffix=".txt")

        try:
            members = [str(PurePosixPath(f.rstrip("/"))) for f in files]
            list_file.write_bytes("\r\n".join(members).encode("utf-8"))

            code = self._run(
                [
                    "a",
                    f"-t{archive_type}",
                    "-scsUTF-8",
                    str(archive),
                    f"@{list_file}",
                ],
                cwd=Path(source_dir),
            )
        finally:
            remove_path(list_file)

        if code != 0:
            raise ArchiverError(code, f"压缩失败 ({archive_type})，退出码 {code}: {archive}")

        return archive
