"""构建服务模块

提供任务模型、文件收集、归档、平台收尾与各类目标构建的核心功能。
构建器主类位于 nwpack.build.builder。
"""

from .archive import ArchiveTool
from .build_context import (
    Arch,
    ArchiverError,
    BuildError,
    InstallerCompilerError,
    NoTaskError,
    Platform,
    ResourceEditorError,
    TargetContext,
    Task,
    TaskGroupError,
    TaskResult,
    ToolError,
    ToolNotFoundError,
    UnknownExtensionError,
    UnknownPlatformError,
    UnknownTargetError,
)
from .collector import FileCollector, build_exclude_patterns
from .versions import VersionEntry, VersionRegistry

__all__ = [
    # 任务模型
    "Platform",
    "Arch",
    "Task",
    "TargetContext",
    "TaskResult",

    # 异常
    "BuildError",
    "NoTaskError",
    "UnknownPlatformError",
    "UnknownTargetError",
    "UnknownExtensionError",
    "ToolError",
    "ToolNotFoundError",
    "ArchiverError",
    "ResourceEditorError",
    "InstallerCompilerError",
    "TaskGroupError",

    # 文件与归档
    "FileCollector",
    "build_exclude_patterns",
    "ArchiveTool",

    # 版本登记
    "VersionEntry",
    "VersionRegistry",
]
