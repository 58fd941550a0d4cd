"""
应用文件组装

把收集到的项目文件放进目标目录：
- packed + Windows/Linux：压缩为 zip 追加到运行时可执行文件末尾；
- packed + macOS：原样复制到应用包资源目录（应用包布局不支持追加）；
- unpacked：逐个复制到资源根目录。
所有模式下打包进去的清单都会移除构建专用的顶层键。
"""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from ..utils.logging import debug, info, LogStage
from ..utils.paths import copy_file, remove_path, tmp_name
from .archive import ArchiveTool
from .build_context import Platform, TargetContext
from .runtime import find_executable


def strip_manifest(manifest: Dict[str, Any], stripped_properties: Sequence[str]) -> Dict[str, Any]:
    """返回去掉构建专用顶层键的清单副本"""
    return {key: value for key, value in manifest.items() if key not in stripped_properties}


def append_file(executable: Path, payload: Path) -> None:
    """把 payload 的字节追加到 executable 末尾（只追加，不截断）"""
    with open(payload, "rb") as src, open(executable, "ab") as dest:
        shutil.copyfileobj(src, dest, 64 * 1024)


class PackedArtifactAssembler:
    """应用文件组装器"""

    def __init__(self, archive_tool: ArchiveTool):
        self.archive_tool = archive_tool

    def assemble(self, context: TargetContext, files: List[str]) -> None:
        """按平台与打包模式组装文件

        Args:
            context: 目标构建上下文
            files: 相对项目根目录的路径，目录以 / 结尾

        Raises:
            UnknownPlatformError: packed 模式下平台无法识别
        """
        stripped = strip_manifest(context.manifest, context.config.stripped_properties)

        if context.config.packed:
            platform = Platform.parse(context.platform)
            if platform in (Platform.WINDOWS, Platform.LINUX):
                self._append_archive(context, files, stripped)
                return
            self._copy_files(context, files)
        else:
            self._copy_files(context, files)

        self._write_manifest(context.app_root / context.manifest_name, stripped)

    def _append_archive(self, context: TargetContext, files: List[str], stripped: Dict[str, Any]) -> None:
        """压缩到临时 zip 并追加到可执行文件末尾"""
        members = [f for f in files if not f.endswith("/") and f != context.manifest_name]
        payload = tmp_name(prefix="nwpack_app_", suffix=".zip")
        executable = find_executable(context.platform, context.target_dir)

        try:
            with tempfile.TemporaryDirectory(prefix="nwpack_manifest_") as staging:
                # 原始清单不进归档，换成去掉构建键的副本
                self._write_manifest(Path(staging) / context.manifest_name, stripped)
                if members:
                    self.archive_tool.compress(context.project_dir, members, "zip", payload)
                self.archive_tool.compress(staging, [context.manifest_name], "zip", payload)

            append_file(executable, payload)
        finally:
            remove_path(payload)

        if not context.options.quiet:
            info(f"已将 {len(members)} 个文件追加到 {executable.name}", stage=LogStage.COPY)

    def _copy_files(self, context: TargetContext, files: List[str]) -> None:
        """逐个复制到资源根目录，创建中间目录"""
        for rel in files:
            dest = context.app_root / rel
            if rel.endswith("/"):
                dest.mkdir(parents=True, exist_ok=True)
            else:
                copy_file(context.project_dir / rel, dest)

        if not context.options.quiet:
            info(f"已复制 {len(files)} 项到 {context.app_root}", stage=LogStage.COPY)

    @staticmethod
    def _write_manifest(path: Union[str, Path], manifest: Dict[str, Any]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(manifest, ensure_ascii=False), encoding="utf-8")
        debug(f"写入清单: {path}", stage=LogStage.COPY)
