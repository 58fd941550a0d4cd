"""
makensis 编译器包装

以 /NOCD 在未编译的源目录中运行 makensis，脚本中的相对 File 路径以该目录为基准。
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Union

from ..build.build_context import InstallerCompilerError, ToolNotFoundError
from ..utils.logging import debug, LogStage

MAKENSIS_CANDIDATES = (
    "makensis",
    "makensis.exe",
    "C:\\Program Files (x86)\\NSIS\\makensis.exe",
    "C:\\Program Files\\NSIS\\makensis.exe",
)


def find_makensis() -> str:
    """定位 makensis，优先使用 NWPACK_MAKENSIS 环境变量

    Raises:
        ToolNotFoundError: 找不到 makensis
    """
    configured = os.environ.get("NWPACK_MAKENSIS")
    if configured:
        return configured

    for candidate in MAKENSIS_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found

    raise ToolNotFoundError("找不到 makensis，请安装 NSIS (https://nsis.sourceforge.io/) 或设置 NWPACK_MAKENSIS")


def nsis_build(
    source_dir: Union[str, Path],
    script: Union[str, Path],
    quiet: bool = True,
    makensis: Optional[str] = None,
) -> None:
    """编译 NSIS 脚本

    Args:
        source_dir: 工作目录（脚本中相对路径的基准）
        script: 脚本路径
        quiet: 是否隐藏 makensis 输出
        makensis: makensis 路径，默认自动查找

    Raises:
        InstallerCompilerError: makensis 以非零退出码结束
    """
    cmd = [makensis or find_makensis(), "/NOCD", "/INPUTCHARSET", "UTF8"]
    if quiet:
        cmd.append("/V2")
    cmd.append(str(script))

    debug(f"执行: {' '.join(cmd)} (cwd={source_dir})", stage=LogStage.INSTALLER)
    result = subprocess.run(
        cmd,
        cwd=str(source_dir),
        stdout=subprocess.DEVNULL if quiet else None,
    )
    if result.returncode != 0:
        raise InstallerCompilerError(result.returncode)
