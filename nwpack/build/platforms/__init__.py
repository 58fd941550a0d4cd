"""平台收尾处理模块"""

from typing import Union

from ..build_context import Platform
from .base import PlatformFinisher
from .linux import LinuxFinisher
from .mac import MacFinisher, detect_encoding, read_plist, rewrite_strings, write_plist
from .windows import ResourceEditor, WindowsFinisher, normalize_windows_version

_FINISHERS = {
    Platform.WINDOWS: WindowsFinisher,
    Platform.MAC: MacFinisher,
    Platform.LINUX: LinuxFinisher,
}


def get_finisher(platform: Union[str, Platform]) -> PlatformFinisher:
    """按平台创建收尾处理器

    Raises:
        UnknownPlatformError: 平台标识无法识别
    """
    return _FINISHERS[Platform.parse(platform)]()


__all__ = [
    "PlatformFinisher",
    "WindowsFinisher",
    "MacFinisher",
    "LinuxFinisher",
    "ResourceEditor",
    "get_finisher",
    "detect_encoding",
    "read_plist",
    "write_plist",
    "rewrite_strings",
    "normalize_windows_version",
]
