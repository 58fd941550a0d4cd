"""
归档目标构建器

把整个目标目录的内容打成 .zip 或 .7z 快照，已存在的归档先删除（覆盖而非合并）。
"""

from pathlib import Path
from typing import List, Optional

from ..utils.logging import info, LogStage
from ..utils.paths import format_size, remove_path
from .archive import ArchiveTool


def list_tree(source_dir: Path) -> List[str]:
    """列出目录下所有文件（含符号链接），相对路径，已排序"""
    source_dir = Path(source_dir)
    return sorted(
        p.relative_to(source_dir).as_posix()
        for p in source_dir.rglob("*")
        if p.is_symlink() or not p.is_dir()
    )


class ArchiveTargetBuilder:
    """归档目标构建器"""

    def __init__(self, archive_tool: Optional[ArchiveTool] = None, quiet: bool = True):
        self.archive_tool = archive_tool or ArchiveTool()
        self.quiet = quiet

    def archive_path(self, archive_type: str, source_dir: Path) -> Path:
        """归档与目标目录同级：<目标目录名>.<类型>"""
        source_dir = Path(source_dir)
        return source_dir.parent / f"{source_dir.name}.{archive_type}"

    def build(self, archive_type: str, source_dir: Path) -> Path:
        """构建归档

        Args:
            archive_type: zip 或 7z
            source_dir: 目标目录

        Returns:
            Path: 归档路径
        """
        target_archive = self.archive_path(archive_type, source_dir)
        remove_path(target_archive)

        files = list_tree(source_dir)
        self.archive_tool.compress(source_dir, files, archive_type, target_archive)

        if not self.quiet:
            size = target_archive.stat().st_size if target_archive.exists() else 0
            info(f"归档完成: {target_archive.name} ({format_size(size)})", stage=LogStage.ARCHIVE)

        return target_archive
