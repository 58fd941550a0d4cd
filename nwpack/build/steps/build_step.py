"""
构建步骤基类模块

定义目录目标构建步骤的抽象接口。
"""

from abc import ABC, abstractmethod

from ..build_context import TargetContext


class BuildStep(ABC):
    """构建步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, context: TargetContext) -> None:
        """执行构建步骤"""
        pass
