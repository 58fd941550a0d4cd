"""
构建上下文模块

定义任务模型（平台、架构）、构建过程中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config.schema import BuildConfig, BuilderOptions


class BuildError(Exception):
    """构建错误基类"""
    pass


class NoTaskError(BuildError):
    """平台与架构组合为空"""

    def __init__(self, message: str = "没有可执行的构建任务，请至少启用一个平台和一个架构"):
        super().__init__(message)


class UnknownPlatformError(BuildError):
    """无法识别的平台标识"""

    def __init__(self, platform: Any):
        super().__init__(f"未知平台: {platform}")
        self.platform = platform


class UnknownTargetError(BuildError):
    """无法识别的构建目标类型"""

    def __init__(self, target: str):
        super().__init__(f"未知构建目标: {target}")
        self.target = target


class UnknownExtensionError(BuildError):
    """不支持的归档扩展名"""

    def __init__(self, archive: Union[str, Path]):
        super().__init__(f"不支持的归档格式: {archive}")
        self.archive = archive


class ToolError(BuildError):
    """外部工具以非零退出码结束"""

    tool = "tool"

    def __init__(self, returncode: int, message: Optional[str] = None):
        super().__init__(message or f"{self.tool} 执行失败，退出码 {returncode}")
        self.returncode = returncode


class ToolNotFoundError(BuildError):
    """找不到外部工具"""
    pass


class ArchiverError(ToolError):
    tool = "7-Zip"


class ResourceEditorError(ToolError):
    tool = "rcedit"


class InstallerCompilerError(ToolError):
    tool = "makensis"


class TaskGroupError(BuildError):
    """并发模式下一个或多个任务失败

    Attributes:
        failures: 失败任务到异常的映射
        results: 成功完成的任务结果
    """

    def __init__(self, failures: Dict["Task", BaseException], results: List[Any]):
        names = ", ".join(str(task) for task in failures)
        super().__init__(f"{len(failures)} 个构建任务失败: {names}")
        self.failures = failures
        self.results = results


class Platform(str, Enum):
    """逻辑平台"""
    WINDOWS = "win"
    MAC = "mac"
    LINUX = "linux"

    @classmethod
    def parse(cls, token: Union[str, "Platform"]) -> "Platform":
        """把平台别名归一化为逻辑平台

        Raises:
            UnknownPlatformError: 不在已知别名中
        """
        if isinstance(token, cls):
            return token
        try:
            return _PLATFORM_ALIASES[str(token).lower()]
        except KeyError:
            raise UnknownPlatformError(token) from None


_PLATFORM_ALIASES = {
    "win32": Platform.WINDOWS,
    "win": Platform.WINDOWS,
    "darwin": Platform.MAC,
    "osx": Platform.MAC,
    "mac": Platform.MAC,
    "linux": Platform.LINUX,
}


class Arch(str, Enum):
    """CPU 架构"""
    X86 = "x86"
    X64 = "x64"

    @property
    def download_name(self) -> str:
        """运行时发布包中使用的架构名"""
        return "ia32" if self is Arch.X86 else "x64"


@dataclass(frozen=True)
class Task:
    """一个 (平台, 架构) 构建任务"""
    platform: Platform
    arch: Arch

    def __str__(self) -> str:
        return f"{self.platform.value}-{self.arch.value}"


@dataclass
class TargetContext:
    """目录目标构建上下文，在各构建步骤之间共享"""
    task: Task
    project_dir: Path
    manifest: Dict[str, Any]
    manifest_name: str
    config: BuildConfig
    options: BuilderOptions
    runtime_dir: Path
    target_dir: Path
    app_root: Path
    runtime_version: str

    # 构建过程中生成的数据
    files: Optional[List[str]] = None
    build_stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def platform(self) -> Platform:
        return self.task.platform

    @property
    def arch(self) -> Arch:
        return self.task.arch


@dataclass
class TaskResult:
    """单个任务的构建结果"""
    task: Task
    target_dir: Path
    artifacts: List[Path] = field(default_factory=list)
    build_time: float = 0.0
