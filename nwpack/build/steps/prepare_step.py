"""
平台修补步骤模块

确保应用资源根目录存在，然后执行平台的资源/元数据修补。
"""

from ...utils.paths import ensure_directory
from ..build_context import TargetContext
from ..platforms.base import PlatformFinisher
from .build_step import BuildStep


class PrepareStep(BuildStep):
    """平台修补步骤"""

    def __init__(self, finisher: PlatformFinisher):
        super().__init__("prepare", "修补资源与元数据")
        self.finisher = finisher

    def execute(self, context: TargetContext) -> None:
        ensure_directory(context.app_root)
        self.finisher.prepare(context)
