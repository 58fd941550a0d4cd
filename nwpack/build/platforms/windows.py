"""
Windows 平台收尾处理

通过 rcedit 修改 nw.exe 内嵌的版本资源（产品版本、文件版本、字符串表、图标），
复制完成后将 nw.exe 重命名为 <ProductName>.exe。
"""

import os
import re
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional

from ...utils.logging import debug, info, LogStage
from ..build_context import Platform, ResourceEditorError, TargetContext, ToolNotFoundError
from ..runtime import STUB_NAMES
from .base import PlatformFinisher

RCEDIT_CANDIDATES = ("rcedit", "rcedit-x64", "rcedit.exe", "rcedit-x64.exe")

_NUMERIC_PREFIX_RE = re.compile(r"^\s*v?(\d+(?:\.\d+)*)")


def normalize_windows_version(version: str) -> str:
    """把版本号归一化为版本资源要求的 N.N.N.N 四段格式

    预发布与构建元数据后缀被丢弃，不足四段补 0，超过四段截断。

    Examples:
        >>> normalize_windows_version("1.2.3-beta.1")
        '1.2.3.0'

    Raises:
        ValueError: 版本号不以数字开头
    """
    match = _NUMERIC_PREFIX_RE.match(version)
    if not match:
        raise ValueError(f"无法归一化的版本号: {version}")

    fields = [str(int(part)) for part in match.group(1).split(".")][:4]
    fields.extend(["0"] * (4 - len(fields)))
    return ".".join(fields)


def find_rcedit() -> List[str]:
    """定位 rcedit，返回命令前缀

    非 Windows 主机上运行 .exe 版本时通过 wine 调用。

    Raises:
        ToolNotFoundError: 找不到 rcedit 或 wine
    """
    executable = os.environ.get("NWPACK_RCEDIT")
    if not executable:
        for name in RCEDIT_CANDIDATES:
            executable = shutil.which(name)
            if executable:
                break

    if not executable:
        raise ToolNotFoundError("找不到 rcedit，请安装后重试或设置 NWPACK_RCEDIT")

    if executable.lower().endswith(".exe") and sys.platform != "win32":
        wine = shutil.which("wine")
        if not wine:
            raise ToolNotFoundError("在非 Windows 主机上修改资源需要 wine")
        return [wine, executable]

    return [executable]


class ResourceEditor:
    """rcedit 包装器"""

    def __init__(self, command: Optional[List[str]] = None):
        self._command = command

    @property
    def command(self) -> List[str]:
        if self._command is None:
            self._command = find_rcedit()
        return self._command

    def edit(
        self,
        executable: Path,
        product_version: str,
        file_version: str,
        version_strings: Dict[str, str],
        icon: Optional[Path] = None,
    ) -> None:
        """原地修改可执行文件的版本资源

        Raises:
            ResourceEditorError: rcedit 执行失败
        """
        args = [
            str(executable),
            "--set-product-version", product_version,
            "--set-file-version", file_version,
        ]
        for key, value in version_strings.items():
            args.extend(["--set-version-string", key, value])
        if icon:
            args.extend(["--set-icon", str(icon)])

        cmd = [*self.command, *args]
        debug(f"执行: {' '.join(cmd)}", stage=LogStage.PATCH)
        completed = subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        if completed.returncode != 0:
            raise ResourceEditorError(completed.returncode)


class WindowsFinisher(PlatformFinisher):
    """Windows 收尾处理"""

    platform = Platform.WINDOWS

    def __init__(self, editor: Optional[ResourceEditor] = None):
        self.editor = editor or ResourceEditor()

    def prepare(self, context: TargetContext) -> None:
        win = context.config.win
        executable = context.target_dir / STUB_NAMES[Platform.WINDOWS]
        icon = context.project_dir / win.icon if win.icon else None

        if not context.options.quiet:
            info(f"修改版本资源: {executable.name}", stage=LogStage.PATCH)

        self.editor.edit(
            executable,
            product_version=normalize_windows_version(win.product_version),
            file_version=normalize_windows_version(win.file_version),
            version_strings=win.string_table,
            icon=icon,
        )

    def finalize(self, context: TargetContext) -> Path:
        src = context.target_dir / STUB_NAMES[Platform.WINDOWS]
        # 与版本资源及安装器快捷方式使用同一个 ProductName
        dest = context.target_dir / f"{context.config.win.string_table['ProductName']}.exe"
        return self._rename(src, dest)
