"""
目录目标构建器

使用管道模式依次执行构建步骤，为一个 平台/架构 生成完整的目录包：
放置运行时 -> 集成编解码库 -> 修补 -> 复制应用文件 -> 重命名。
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..config.schema import BuildConfig, BuilderOptions
from ..utils.logging import error, info, success, LogStage
from .archive import ArchiveTool
from .assembler import PackedArtifactAssembler
from .build_context import Arch, Platform, TargetContext, Task
from .platforms import get_finisher
from .platforms.base import PlatformFinisher
from .runtime import app_root_for
from .steps import BuildStep, CodecIntegrationStep, CopyFilesStep, FinalizeStep, PrepareStep, RuntimeStep


class DirectoryTargetBuilder:
    """目录目标构建器"""

    def __init__(
        self,
        options: BuilderOptions,
        project_dir: Path,
        archive_tool: Optional[ArchiveTool] = None,
        finisher_factory: Callable[[Platform], PlatformFinisher] = get_finisher,
        codec_downloader_factory: Optional[Callable] = None,
        dependency_inspector: Optional[Callable] = None,
    ):
        self.options = options
        self.project_dir = Path(project_dir)
        self.archive_tool = archive_tool or ArchiveTool()
        self.finisher_factory = finisher_factory
        self.codec_downloader_factory = codec_downloader_factory
        self.dependency_inspector = dependency_inspector

    def target_path(self, task: Task, config: BuildConfig) -> Path:
        """目标目录：<输出目录>/<name>-<version>-<platform>-<arch>"""
        name = f"{config.name}-{config.version}-{task.platform.value}-{task.arch.value}"
        return self.project_dir / config.output_dir_name / name

    def create_steps(self, finisher: PlatformFinisher) -> List[BuildStep]:
        """按顺序创建构建步骤；修补必须在复制之前，重命名必须在复制之后"""
        return [
            RuntimeStep(),
            CodecIntegrationStep(self.codec_downloader_factory),
            PrepareStep(finisher),
            CopyFilesStep(PackedArtifactAssembler(self.archive_tool), self.dependency_inspector),
            FinalizeStep(finisher),
        ]

    def build(
        self,
        platform: Union[str, Platform],
        arch: Union[str, Arch],
        runtime_dir: Path,
        manifest: Dict[str, Any],
        config: BuildConfig,
        runtime_version: str,
    ) -> Path:
        """构建目录目标

        Args:
            platform: 平台（接受别名）
            arch: 架构
            runtime_dir: 解压后的运行时包目录
            manifest: 项目清单
            config: 构建配置
            runtime_version: 具体的运行时版本号

        Returns:
            Path: 填充完成的目标目录

        Raises:
            UnknownPlatformError: 平台无法识别
        """
        task = Task(Platform.parse(platform), Arch(arch))
        target_dir = self.target_path(task, config)

        context = TargetContext(
            task=task,
            project_dir=self.project_dir,
            manifest=manifest,
            manifest_name=self.options.manifest_name,
            config=config,
            options=self.options,
            runtime_dir=Path(runtime_dir),
            target_dir=target_dir,
            app_root=app_root_for(task.platform, target_dir),
            runtime_version=runtime_version,
        )

        finisher = self.finisher_factory(task.platform)
        started = time.time()

        for step in self.create_steps(finisher):
            if not self.options.quiet:
                info(f"执行步骤: {step.description}", stage=LogStage.TARGET)
            try:
                step.execute(context)
            except Exception as e:
                error(f"{task} 步骤 {step.name} 失败: {e}", stage=LogStage.TARGET)
                raise

        if not self.options.quiet:
            success(f"目录目标完成: {target_dir} ({time.time() - started:.2f}s)", stage=LogStage.TARGET)

        return target_dir
