"""
运行时与编解码库下载器

按 平台/架构/版本（/变体）下载预构建包并解压到本地缓存目录；
已下载或已解压的内容会被复用。
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import requests
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn

from ..build.archive import ArchiveTool
from ..build.build_context import Arch, Platform
from ..config.schema import DEFAULT_MIRROR
from ..utils.logging import debug, info, LogStage
from ..utils.paths import ensure_directory, remove_path

DEFAULT_CACHE_DIR = Path.home() / ".nwpack" / "caches"
CODEC_MIRROR = "https://github.com/iteufel/nwjs-ffmpeg-prebuilt/releases/download/"
SYMBOLIC_VERSIONS = ("latest", "stable", "lts")

# 运行时发布包中的平台名
_PLATFORM_NAMES = {
    Platform.WINDOWS: "win",
    Platform.MAC: "osx",
    Platform.LINUX: "linux",
}


class DownloadError(Exception):
    """下载失败"""
    pass


def resolve_version(version: str, mirror: str = DEFAULT_MIRROR, timeout: int = 30) -> str:
    """把 latest / stable / lts 解析为具体版本号，其余版本去掉前缀 v

    Raises:
        DownloadError: 无法获取版本列表
    """
    if version not in SYMBOLIC_VERSIONS:
        return version.lstrip("v")

    url = f"{mirror.rstrip('/')}/versions.json"
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        resolved = response.json()[version]
    except (requests.RequestException, ValueError, KeyError) as e:
        raise DownloadError(f"无法解析运行时版本 {version}: {e}") from e

    debug(f"运行时版本 {version} -> {resolved}", stage=LogStage.DOWNLOAD)
    return str(resolved).lstrip("v")


class BaseDownloader(ABC):
    """下载器基类"""

    stage_name = "package"

    def __init__(
        self,
        platform: Platform,
        arch: Arch,
        version: str,
        cache_dir: Optional[Path] = None,
        use_caches: bool = True,
        show_progress: bool = False,
        archive_tool: Optional[ArchiveTool] = None,
    ):
        self.platform = Platform.parse(platform)
        self.arch = Arch(arch)
        self.version = version
        self.cache_dir = Path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR
        self.use_caches = use_caches
        self.show_progress = show_progress
        self.archive_tool = archive_tool or ArchiveTool()

    @property
    def platform_name(self) -> str:
        return _PLATFORM_NAMES[self.platform]

    @property
    def extension(self) -> str:
        return "zip"

    @property
    @abstractmethod
    def url(self) -> str:
        """归档下载地址"""
        pass

    @property
    def filename(self) -> str:
        return self.url.rsplit("/", 1)[-1]

    def fetch(self) -> Path:
        """下载归档到缓存目录，已存在时直接复用

        Raises:
            DownloadError: 网络或 HTTP 错误
        """
        ensure_directory(self.cache_dir)
        archive = self.cache_dir / self.filename

        if self.use_caches and archive.is_file():
            debug(f"使用缓存: {archive}", stage=LogStage.DOWNLOAD)
            return archive

        partial = archive.with_name(archive.name + ".part")
        info(f"下载 {self.stage_name}: {self.url}", stage=LogStage.DOWNLOAD)

        try:
            with requests.get(self.url, stream=True, timeout=60) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length") or 0) or None

                with open(partial, "wb") as handle, Progress(
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    DownloadColumn(),
                    TransferSpeedColumn(),
                    disable=not self.show_progress,
                ) as progress:
                    task = progress.add_task(self.filename, total=total)
                    for chunk in response.iter_content(chunk_size=64 * 1024):
                        handle.write(chunk)
                        progress.update(task, advance=len(chunk))
        except requests.RequestException as e:
            remove_path(partial)
            raise DownloadError(f"下载失败 {self.url}: {e}") from e

        partial.replace(archive)
        return archive

    def fetch_and_extract(self) -> Path:
        """下载并解压，返回解压目录"""
        archive = self.fetch()
        dest = self.cache_dir / archive.name[:-len(f".{self.extension}")]

        if self.use_caches and dest.is_dir() and any(dest.iterdir()):
            debug(f"使用已解压的缓存: {dest}", stage=LogStage.DOWNLOAD)
            return dest

        ensure_directory(dest)
        self.archive_tool.extract_generic(archive, dest, overwrite=True)
        return dest


class RuntimeDownloader(BaseDownloader):
    """运行时下载器"""

    stage_name = "运行时"

    def __init__(self, platform: Platform, arch: Arch, version: str, flavor: str = "normal", mirror: str = DEFAULT_MIRROR, **kwargs):
        super().__init__(platform, arch, version, **kwargs)
        self.flavor = flavor
        self.mirror = mirror

    @property
    def extension(self) -> str:
        return "tar.gz" if self.platform is Platform.LINUX else "zip"

    @property
    def url(self) -> str:
        flavor = "-sdk" if self.flavor == "sdk" else ""
        name = f"nwjs{flavor}-v{self.version}-{self.platform_name}-{self.arch.download_name}.{self.extension}"
        return f"{self.mirror.rstrip('/')}/v{self.version}/{name}"


class CodecDownloader(BaseDownloader):
    """编解码库（ffmpeg）下载器"""

    stage_name = "编解码库"

    @property
    def url(self) -> str:
        name = f"{self.version}-{self.platform_name}-{self.arch.download_name}.zip"
        return f"{CODEC_MIRROR}{self.version}/{name}"
