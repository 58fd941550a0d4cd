"""
安装器目标构建器

仅适用于 Windows：
- nsis: 完整安装器，直接打包目标目录
- nsis7z: 自解压安装器，内嵌目标目录的 7z 快照

构建完成后登记到 versions.nsis.json；启用 diffUpdaters 时，
为每个更早的已登记版本生成差量更新安装器。
"""

from pathlib import Path
from typing import Callable, List, Optional

from ..config.schema import TARGET_NSIS, TARGET_NSIS_7Z, BuildConfig
from ..nsis import Nsis7Zipper, NsisComposer, NsisDiffer, NsisOptions, nsis_build
from ..utils.logging import info, success, LogStage
from ..utils.paths import remove_path, tmp_name
from .archive_target import ArchiveTargetBuilder
from .build_context import Platform, Task, UnknownTargetError
from .platforms.windows import normalize_windows_version
from .versions import VersionRegistry


class InstallerTargetBuilder:
    """安装器目标构建器"""

    def __init__(
        self,
        project_dir: Path,
        config: BuildConfig,
        archive_builder: Optional[ArchiveTargetBuilder] = None,
        compiler: Callable = nsis_build,
        quiet: bool = True,
    ):
        self.project_dir = Path(project_dir)
        self.config = config
        self.archive_builder = archive_builder or ArchiveTargetBuilder(quiet=quiet)
        self.compiler = compiler
        self.quiet = quiet

    @property
    def output_dir(self) -> Path:
        return self.project_dir / self.config.output_dir_name

    def make_options(self, output: Path) -> NsisOptions:
        """从构建配置生成安装器元数据"""
        win = self.config.win
        nsis = self.config.nsis
        strings = win.string_table
        return NsisOptions(
            app_name=strings["ProductName"],
            company_name=strings["CompanyName"],
            description=strings["FileDescription"],
            copyright=strings["LegalCopyright"],
            version=normalize_windows_version(win.product_version),
            icon=self.project_dir / nsis.icon if nsis.icon else None,
            un_icon=self.project_dir / nsis.un_icon if nsis.un_icon else None,
            compression="lzma",
            solid=True,
            languages=list(nsis.languages),
            install_directory=nsis.install_directory,
            output=output,
        )

    def installer_path(self, source_dir: Path) -> Path:
        return source_dir.parent / f"{source_dir.name}-Setup.exe"

    def updater_path(self, from_version: str, to_version: str, task: Task) -> Path:
        name = f"{self.config.name}-{to_version}-from-{from_version}-{task.platform.value}-{task.arch.value}-Update.exe"
        return self.output_dir / name

    def _compile(self, source_dir: Path, script_text: str) -> None:
        """写入临时脚本并编译，无论成功与否都删除脚本"""
        script = tmp_name(suffix=".nsi")
        try:
            script.write_text(script_text, encoding="utf-8")
            self.compiler(source_dir, script, quiet=self.quiet)
        finally:
            remove_path(script)

    def build(self, kind: str, task: Task, source_dir: Path) -> List[Path]:
        """构建安装器

        Args:
            kind: nsis 或 nsis7z
            task: 平台与架构
            source_dir: 目标目录

        Returns:
            List[Path]: 生成的安装器与更新器；非 Windows 平台返回空列表

        Raises:
            UnknownTargetError: kind 不是安装器类型
            InstallerCompilerError: makensis 失败
        """
        if kind not in (TARGET_NSIS, TARGET_NSIS_7Z):
            raise UnknownTargetError(kind)

        if task.platform != Platform.WINDOWS:
            if not self.quiet:
                info(f"跳过 {task.platform.value} 平台的 {kind} 目标", stage=LogStage.INSTALLER)
            return []

        source_dir = Path(source_dir)
        registry = VersionRegistry.for_output(self.output_dir)
        target = self.installer_path(source_dir)
        options = self.make_options(target)

        if kind == TARGET_NSIS:
            script = NsisComposer(options).make()
        else:
            archive = self.archive_builder.build("7z", source_dir)
            script = Nsis7Zipper(archive, options).make()

        self._compile(source_dir, script)
        if not self.quiet:
            success(f"安装器完成: {target.name}", stage=LogStage.INSTALLER)

        version = self.config.version
        registry.add_version(version, source_dir)
        registry.add_installer(version, task.arch.value, target)
        artifacts = [target]

        if self.config.nsis.diff_updaters:
            for from_version in registry.older_versions(version):
                artifacts.append(self.build_updater(registry, task, from_version, version))

        registry.save()
        return artifacts

    def build_updater(self, registry: VersionRegistry, task: Task, from_version: str, to_version: str) -> Path:
        """生成从 from_version 到 to_version 的差量更新安装器"""
        from_dir = registry.resolve(registry.get_version(from_version).source)
        to_dir = registry.resolve(registry.get_version(to_version).source)
        target = self.updater_path(from_version, to_version, task)

        script = NsisDiffer(from_dir, to_dir, self.make_options(target)).make()
        self._compile(to_dir, script)
        registry.add_updater(to_version, from_version, task.arch.value, target)

        if not self.quiet:
            success(f"差量更新完成: {target.name}", stage=LogStage.REGISTRY)
        return target
