"""
平台重命名步骤模块

复制完成后重命名可执行文件或应用包。
"""

from ...utils.logging import info, LogStage
from ..build_context import TargetContext
from ..platforms.base import PlatformFinisher
from .build_step import BuildStep


class FinalizeStep(BuildStep):
    """平台重命名步骤"""

    def __init__(self, finisher: PlatformFinisher):
        super().__init__("finalize", "重命名可执行文件")
        self.finisher = finisher

    def execute(self, context: TargetContext) -> None:
        renamed = self.finisher.finalize(context)
        context.build_stats["executable"] = renamed
        if not context.options.quiet:
            info(f"重命名为 {renamed.name}", stage=LogStage.TARGET)
