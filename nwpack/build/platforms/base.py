"""
平台收尾处理基类

每个平台在复制应用文件之前修补资源/元数据（prepare），
在复制之后重命名可执行文件或应用包（finalize）。
修补工具依赖桩的原始名称，因此修补必须先于复制；
复制不能覆盖已重命名的文件，因此重命名必须晚于复制。
"""

from abc import ABC, abstractmethod
from pathlib import Path

from ..build_context import Platform, TargetContext


class PlatformFinisher(ABC):
    """平台收尾处理抽象基类"""

    platform: Platform

    @abstractmethod
    def prepare(self, context: TargetContext) -> None:
        """复制应用文件之前修补资源与元数据"""
        pass

    @abstractmethod
    def finalize(self, context: TargetContext) -> Path:
        """复制应用文件之后重命名，返回重命名后的路径"""
        pass

    @staticmethod
    def _rename(src: Path, dest: Path) -> Path:
        src.rename(dest)
        return dest
