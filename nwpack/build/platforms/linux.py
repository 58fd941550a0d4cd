"""Linux 平台收尾处理：无需修补，复制后将 nw 重命名为应用包名"""

from pathlib import Path

from ..build_context import Platform, TargetContext
from ..runtime import STUB_NAMES
from .base import PlatformFinisher


class LinuxFinisher(PlatformFinisher):
    """Linux 收尾处理"""

    platform = Platform.LINUX

    def prepare(self, context: TargetContext) -> None:
        pass

    def finalize(self, context: TargetContext) -> Path:
        src = context.target_dir / STUB_NAMES[Platform.LINUX]
        return self._rename(src, context.target_dir / context.config.name)
