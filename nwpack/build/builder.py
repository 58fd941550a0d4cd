"""
构建器主类

根据平台与架构开关生成任务矩阵，为每个任务执行：
下载运行时 -> 构建目录目标 -> 构建归档 / 安装器目标。
顺序与并发两种调度策略共享同一个单任务函数。
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..config.loader import load_project
from ..config.schema import KNOWN_TARGETS, TARGET_7Z, TARGET_ZIP, BuildConfig, BuilderOptions
from ..download import RuntimeDownloader, resolve_version
from ..utils.logging import error, info, success, LogStage
from .archive import ArchiveTool
from .archive_target import ArchiveTargetBuilder
from .build_context import (
    Arch,
    NoTaskError,
    Platform,
    Task,
    TaskGroupError,
    TaskResult,
    UnknownTargetError,
)
from .directory_target import DirectoryTargetBuilder
from .installer_target import InstallerTargetBuilder
from .platforms import get_finisher

# 任务执行函数
TaskRunner = Callable[[Task], TaskResult]


def plan_tasks(options: BuilderOptions) -> List[Task]:
    """生成任务矩阵：平台开关与架构开关同时启用的组合

    Raises:
        NoTaskError: 矩阵为空
    """
    tasks = [
        Task(platform, arch)
        for platform in Platform
        for arch in Arch
        if getattr(options, platform.value) and getattr(options, arch.value)
    ]
    if not tasks:
        raise NoTaskError()
    return tasks


class SequentialScheduler:
    """顺序调度：按矩阵顺序逐个执行，第一个失败立即抛出"""

    def run(self, tasks: List[Task], run_task: TaskRunner) -> List[TaskResult]:
        return [run_task(task) for task in tasks]


class ConcurrentScheduler:
    """并发调度：每个任务一个线程，全部结束后统一报告失败"""

    def run(self, tasks: List[Task], run_task: TaskRunner) -> List[TaskResult]:
        results: List[TaskResult] = []
        failures: Dict[Task, BaseException] = {}

        # TODO: 为 max_workers 增加上限选项，目前任务数即线程数
        with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="nwpack") as executor:
            futures: List[Tuple[Task, Future]] = [(task, executor.submit(run_task, task)) for task in tasks]

        for task, future in futures:
            try:
                results.append(future.result())
            except Exception as e:
                error(f"{task} 构建失败: {e}", stage=LogStage.DONE)
                failures[task] = e

        if failures:
            raise TaskGroupError(failures, results)
        return results


class Builder:
    """NW.js 应用构建器

    Args:
        options: 构建器选项
        project_dir: 项目根目录（包含清单文件）
        runtime_downloader_factory: 运行时下载器工厂，默认 RuntimeDownloader
        codec_downloader_factory: 编解码库下载器工厂，默认 CodecDownloader
        archive_tool: 7-Zip 包装器
        finisher_factory: 平台收尾处理器工厂
        installer_compiler: NSIS 编译函数
        version_resolver: 运行时版本解析函数
    """

    def __init__(
        self,
        options: BuilderOptions,
        project_dir: Path,
        runtime_downloader_factory: Optional[Callable] = None,
        codec_downloader_factory: Optional[Callable] = None,
        archive_tool: Optional[ArchiveTool] = None,
        finisher_factory: Optional[Callable] = None,
        installer_compiler: Optional[Callable] = None,
        version_resolver: Optional[Callable[[str, str], str]] = None,
    ):
        self.options = options
        self.project_dir = Path(project_dir)
        self.runtime_downloader_factory = runtime_downloader_factory or RuntimeDownloader
        self.codec_downloader_factory = codec_downloader_factory
        self.archive_tool = archive_tool or ArchiveTool()
        self.finisher_factory = finisher_factory or get_finisher
        self.installer_compiler = installer_compiler
        self.version_resolver = version_resolver or resolve_version

    @property
    def quiet(self) -> bool:
        return self.options.quiet

    def plan_tasks(self) -> List[Task]:
        return plan_tasks(self.options)

    def build(self) -> List[TaskResult]:
        """执行全部构建任务

        Returns:
            List[TaskResult]: 按任务矩阵顺序排列的结果

        Raises:
            NoTaskError: 没有启用任何 平台/架构 组合
            TaskGroupError: 并发模式下有任务失败
        """
        tasks = self.plan_tasks()

        if not self.quiet:
            names = ", ".join(str(task) for task in tasks)
            info(f"开始构建: [{names}] (concurrent={self.options.concurrent})", stage=LogStage.PLAN)

        if self.options.concurrent:
            return ConcurrentScheduler().run(tasks, self._timed(self.build_isolated))

        manifest, config = load_project(self.project_dir, self.options.manifest_name)
        runtime_version = self.version_resolver(config.nw_version, self.options.mirror)

        def run(task: Task) -> TaskResult:
            return self.build_task(task, manifest, config, runtime_version)

        return SequentialScheduler().run(tasks, self._timed(run))

    def _timed(self, run_task: TaskRunner) -> TaskRunner:
        """为单任务函数附加计时与日志"""
        def wrapper(task: Task) -> TaskResult:
            started = time.time()
            result = run_task(task)
            result.build_time = time.time() - started
            if not self.quiet:
                success(f"{task} 构建完成，耗时 {result.build_time:.2f}s", stage=LogStage.DONE)
            return result
        return wrapper

    def build_isolated(self, task: Task) -> TaskResult:
        """以独立的单任务子构建器执行任务（并发模式）"""
        sub_builder = Builder(
            self.options.for_task(task),
            self.project_dir,
            runtime_downloader_factory=self.runtime_downloader_factory,
            codec_downloader_factory=self.codec_downloader_factory,
            archive_tool=self.archive_tool,
            finisher_factory=self.finisher_factory,
            installer_compiler=self.installer_compiler,
            version_resolver=self.version_resolver,
        )
        return sub_builder.build()[0]

    def build_task(self, task: Task, manifest: Dict, config: BuildConfig, runtime_version: str) -> TaskResult:
        """单任务构建

        Raises:
            UnknownTargetError: 配置中存在未知目标类型（在下载前检查）
        """
        for target in config.targets:
            if target not in KNOWN_TARGETS:
                raise UnknownTargetError(target)

        downloader = self.runtime_downloader_factory(
            platform=task.platform,
            arch=task.arch,
            version=runtime_version,
            flavor=config.nw_flavor,
            mirror=self.options.mirror,
            cache_dir=self.options.cache_dir,
            use_caches=True,
            show_progress=not self.quiet,
            archive_tool=self.archive_tool,
        )

        if not self.quiet:
            info(f"获取运行时: {task} v{runtime_version} ({config.nw_flavor})", stage=LogStage.DOWNLOAD)

        runtime_dir = downloader.fetch_and_extract()

        started = time.time()
        directory_builder = DirectoryTargetBuilder(
            self.options,
            self.project_dir,
            archive_tool=self.archive_tool,
            finisher_factory=self.finisher_factory,
            codec_downloader_factory=self.codec_downloader_factory,
        )
        target_dir = directory_builder.build(task.platform, task.arch, runtime_dir, manifest, config, runtime_version)

        if not self.quiet:
            info(f"目录目标耗时 {time.time() - started:.2f}s", stage=LogStage.TARGET)

        result = TaskResult(task=task, target_dir=target_dir)
        archive_builder = ArchiveTargetBuilder(self.archive_tool, quiet=self.quiet)

        for target in config.targets:
            started = time.time()
            if target in (TARGET_ZIP, TARGET_7Z):
                result.artifacts.append(archive_builder.build(target, target_dir))
            else:
                installer_builder = self._installer_builder(config, archive_builder)
                result.artifacts.extend(installer_builder.build(target, task, target_dir))

            if not self.quiet:
                info(f"{target} 目标耗时 {time.time() - started:.2f}s", stage=LogStage.ARCHIVE)

        return result

    def _installer_builder(self, config: BuildConfig, archive_builder: ArchiveTargetBuilder) -> InstallerTargetBuilder:
        kwargs = {}
        if self.installer_compiler is not None:
            kwargs["compiler"] = self.installer_compiler
        return InstallerTargetBuilder(
            self.project_dir,
            config,
            archive_builder=archive_builder,
            quiet=self.quiet,
            **kwargs,
        )
