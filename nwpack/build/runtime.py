"""
运行时布局

描述各平台运行时发布包的目录结构：桩可执行文件、编解码库、应用资源目录。
"""

from pathlib import Path
from typing import Optional

from .build_context import Platform

# 各平台运行时中的桩名称
STUB_NAMES = {
    Platform.WINDOWS: "nw.exe",
    Platform.MAC: "nwjs.app",
    Platform.LINUX: "nw",
}

CODEC_LIBRARIES = {
    Platform.WINDOWS: "ffmpeg.dll",
    Platform.MAC: "libffmpeg.dylib",
    Platform.LINUX: "libffmpeg.so",
}

MAC_BUNDLE = "nwjs.app"
MAC_APP_ROOT = "nwjs.app/Contents/Resources/app.nw"
MAC_INFO_PLIST = "nwjs.app/Contents/Info.plist"
MAC_ICON = "nwjs.app/Contents/Resources/app.icns"
MAC_EXECUTABLE = "nwjs.app/Contents/MacOS/nwjs"


def _search(root: Path, name: str, want_dir: bool) -> Optional[Path]:
    """广度优先查找名为 name 的条目，结果确定"""
    level = [root]
    while level:
        next_level = []
        for directory in level:
            candidate = directory / name
            if candidate.exists() and candidate.is_dir() == want_dir:
                return candidate
            next_level.extend(sorted(p for p in directory.iterdir() if p.is_dir() and not p.is_symlink()))
        level = next_level
    return None


def find_runtime_root(platform: Platform, runtime_dir: Path) -> Path:
    """定位解压后运行时包中的运行时根目录（包含桩的目录）

    Raises:
        FileNotFoundError: 运行时包中没有对应平台的桩
    """
    platform = Platform.parse(platform)
    stub = _search(Path(runtime_dir), STUB_NAMES[platform], want_dir=platform is Platform.MAC)
    if stub is None:
        raise FileNotFoundError(f"运行时包中找不到 {STUB_NAMES[platform]}: {runtime_dir}")
    return stub.parent


def app_root_for(platform: Platform, target_dir: Path) -> Path:
    """应用资源根目录：Windows/Linux 为目标目录本身，macOS 为应用包内的 app.nw"""
    platform = Platform.parse(platform)
    if platform is Platform.MAC:
        return Path(target_dir) / MAC_APP_ROOT
    return Path(target_dir)


def find_executable(platform: Platform, target_dir: Path) -> Path:
    """目标目录中（重命名之前的）运行时可执行文件"""
    platform = Platform.parse(platform)
    if platform is Platform.MAC:
        return Path(target_dir) / MAC_EXECUTABLE
    return Path(target_dir) / STUB_NAMES[platform]


def find_codec_library(platform: Platform, directory: Path) -> Path:
    """在目录中查找编解码库

    Raises:
        FileNotFoundError: 找不到编解码库
    """
    platform = Platform.parse(platform)
    library = _search(Path(directory), CODEC_LIBRARIES[platform], want_dir=False)
    if library is None:
        raise FileNotFoundError(f"找不到 {CODEC_LIBRARIES[platform]}: {directory}")
    return library
