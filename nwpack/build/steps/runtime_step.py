"""
运行时放置步骤模块

清空目标目录，并把运行时根目录的全部内容复制进去。
"""

import shutil

from ...utils.logging import debug, info, LogStage
from ...utils.paths import empty_directory
from ..build_context import TargetContext
from ..runtime import find_runtime_root
from .build_step import BuildStep


class RuntimeStep(BuildStep):
    """运行时放置步骤"""

    def __init__(self):
        super().__init__("runtime", "放置运行时")

    def execute(self, context: TargetContext) -> None:
        runtime_root = find_runtime_root(context.platform, context.runtime_dir)
        debug(f"运行时根目录: {runtime_root}", stage=LogStage.TARGET)

        empty_directory(context.target_dir)
        # 符号链接按链接复制（macOS 框架目录依赖这些链接）
        shutil.copytree(runtime_root, context.target_dir, symlinks=True, dirs_exist_ok=True)

        if not context.options.quiet:
            info(f"运行时已复制到 {context.target_dir}", stage=LogStage.TARGET)
