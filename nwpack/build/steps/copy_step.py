"""
应用文件复制步骤模块

收集项目文件（应用全部排除规则）并交给组装器放入目标目录。
"""

from typing import Callable, Optional

from ...utils.logging import debug, info, LogStage
from ..assembler import PackedArtifactAssembler
from ..build_context import TargetContext
from ..collector import FileCollector
from ..dependencies import find_excludable_dependencies
from .build_step import BuildStep


class CopyFilesStep(BuildStep):
    """应用文件复制步骤"""

    def __init__(self, assembler: PackedArtifactAssembler, dependency_inspector: Optional[Callable] = None):
        super().__init__("copy", "复制应用文件")
        self.assembler = assembler
        self.collector = FileCollector()
        self.dependency_inspector = dependency_inspector or find_excludable_dependencies

    def execute(self, context: TargetContext) -> None:
        excludable = self.dependency_inspector(context.project_dir, context.manifest)
        files = self.collector.collect_project_files(context.project_dir, context.config, excludable)
        context.files = files

        stats = self.collector.get_statistics()
        context.build_stats.update(stats)

        if not context.options.quiet:
            info(f"收集到 {stats['total_files']} 个文件, {stats['total_directories']} 个目录", stage=LogStage.COPY)

        # 在 DEBUG 级别输出前 20 项用于诊断
        for idx, rel in enumerate(files[:20]):
            debug(f"文件[{idx}]: {rel}", stage=LogStage.COPY)
        if len(files) > 20:
            debug(f"... 还有 {len(files) - 20} 项未列出", stage=LogStage.COPY)

        self.assembler.assemble(context, files)
