"""
配置 Schema 定义

使用 Pydantic 定义构建器选项与项目清单中的构建配置。
清单（package.json / manifest.json）的 `build` 字段使用 camelCase 键名，
Python 侧统一使用 snake_case 属性。所有模型构造后不可变。
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from ..build.build_context import Task


DEFAULT_MIRROR = "https://dl.nwjs.io/"

# 构建目标类型
TARGET_ZIP = "zip"
TARGET_7Z = "7z"
TARGET_NSIS = "nsis"
TARGET_NSIS_7Z = "nsis7z"
KNOWN_TARGETS = (TARGET_ZIP, TARGET_7Z, TARGET_NSIS, TARGET_NSIS_7Z)


class _ManifestModel(BaseModel):
    """清单子模型基类：camelCase 别名，冻结，忽略未知键"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class WinConfig(_ManifestModel):
    """Windows 可执行文件版本资源配置"""
    product_name: str = Field(..., description="产品名称，可被 version_strings 中的 ProductName 覆盖", min_length=1)
    company_name: str = Field("", description="公司名称")
    file_description: str = Field("", description="文件描述")
    copyright: str = Field("", description="版权信息")
    product_version: str = Field(..., description="产品版本")
    file_version: str = Field(..., description="文件版本")
    version_strings: Dict[str, str] = Field(default_factory=dict, description="额外的版本字符串表项")
    icon: Optional[str] = Field(None, description="可执行文件图标 (.ico)")

    @property
    def string_table(self) -> Dict[str, str]:
        """写入版本资源的完整字符串表"""
        table = {
            "ProductName": self.product_name,
            "CompanyName": self.company_name,
            "FileDescription": self.file_description,
            "LegalCopyright": self.copyright,
        }
        table.update(self.version_strings)
        return table


class MacConfig(_ManifestModel):
    """macOS 应用包描述信息"""
    name: str = Field(..., description="CFBundleName", min_length=1)
    display_name: str = Field(..., description="CFBundleDisplayName，同时决定 .app 目录名", min_length=1)
    version: str = Field(..., description="CFBundleVersion / CFBundleShortVersionString")
    description: str = Field("", description="使用说明字符串")
    copyright: str = Field("", description="版权信息")
    icon: Optional[str] = Field(None, description="应用图标 (.icns)")


class NsisConfig(_ManifestModel):
    """NSIS 安装器配置"""
    icon: Optional[str] = Field(None, description="安装器图标")
    un_icon: Optional[str] = Field(None, description="卸载器图标")
    languages: List[str] = Field(default_factory=lambda: ["English"], description="安装器语言", min_length=1)
    diff_updaters: bool = Field(False, description="是否生成差量更新安装器")
    install_directory: Optional[str] = Field(None, description="默认安装目录")


class BuildConfig(_ManifestModel):
    """项目构建配置

    由项目清单推导而来；清单顶层的 name / version / description
    作为各平台元数据的默认值。
    """

    # 清单顶层信息
    name: str = Field(..., description="应用包名", min_length=1)
    version: str = Field(..., description="应用版本（语义化版本）", min_length=1)
    description: str = Field("", description="应用描述")

    app_id: str = Field(..., description="应用标识（macOS CFBundleIdentifier）")
    nw_version: str = Field("lts", description="运行时版本，支持 latest / stable / lts")
    nw_flavor: Literal["normal", "sdk"] = Field("normal", description="运行时变体")
    output: str = Field("./dist/", description="输出目录（相对项目根目录）")
    packed: bool = Field(False, description="是否以单个归档形式打包应用文件")
    targets: List[str] = Field(default_factory=list, description="构建目标：zip / 7z / nsis / nsis7z")
    files: List[str] = Field(default_factory=lambda: ["**/*"], description="包含的文件模式")
    excludes: List[str] = Field(default_factory=list, description="排除的文件模式")
    stripped_properties: List[str] = Field(default_factory=lambda: ["build"], description="打包时从清单移除的顶层键")
    ffmpeg_integration: bool = Field(False, description="是否替换为完整编解码库")

    win: WinConfig
    mac: MacConfig
    nsis: NsisConfig = Field(default_factory=NsisConfig)

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: str) -> str:
        """输出目录必须位于项目根目录内"""
        path = Path(v)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError("输出目录必须是项目内的相对路径")
        return v

    @property
    def output_dir_name(self) -> str:
        """归一化后的输出目录（posix 风格，无首尾斜杠）"""
        return Path(self.output).as_posix().strip("/").removeprefix("./") or "."

    @classmethod
    def from_manifest(cls, manifest: Dict[str, Any]) -> "BuildConfig":
        """从项目清单构造构建配置

        Args:
            manifest: 已解析的清单字典

        Returns:
            BuildConfig: 填充默认值后的配置
        """
        build = dict(manifest.get("build") or {})
        name = manifest.get("name")
        version = manifest.get("version")
        description = manifest.get("description") or ""

        data: Dict[str, Any] = dict(build)
        data["name"] = name
        data["version"] = version
        data["description"] = description
        data.setdefault("appId", f"io.github.nwjs.{name}")

        win = dict(build.get("win") or {})
        win.setdefault("productName", name)
        win.setdefault("fileDescription", description)
        win.setdefault("productVersion", version)
        win.setdefault("fileVersion", version)
        data["win"] = win

        mac = dict(build.get("mac") or {})
        mac.setdefault("name", name)
        mac.setdefault("displayName", mac["name"])
        mac.setdefault("version", version)
        mac.setdefault("description", description)
        data["mac"] = mac

        return cls.model_validate(data)


class BuilderOptions(BaseModel):
    """构建器选项（命令行 / 选项文件）"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    win: bool = Field(False, description="构建 Windows 版本")
    mac: bool = Field(False, description="构建 macOS 版本")
    linux: bool = Field(False, description="构建 Linux 版本")
    x86: bool = Field(False, description="构建 x86 架构")
    x64: bool = Field(False, description="构建 x64 架构")
    chrome_app: bool = Field(False, description="使用 manifest.json 而不是 package.json")
    mirror: str = Field(DEFAULT_MIRROR, description="运行时下载镜像")
    concurrent: bool = Field(False, description="并发执行各构建任务")
    quiet: bool = Field(True, description="不输出构建进度")
    cache_dir: Optional[Path] = Field(None, description="下载缓存目录")

    @property
    def manifest_name(self) -> str:
        """项目清单文件名"""
        return "manifest.json" if self.chrome_app else "package.json"

    def for_task(self, task: "Task") -> "BuilderOptions":
        """生成只包含单个任务的子选项，用于并发模式下的独立子构建"""
        update: Dict[str, Any] = {
            "win": False, "mac": False, "linux": False,
            "x86": False, "x64": False,
            "concurrent": False,
            "quiet": True,
        }
        update[task.platform.value] = True
        update[task.arch.value] = True
        return self.model_copy(update=update)
