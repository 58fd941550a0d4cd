"""
macOS 平台收尾处理

修改应用包的 Info.plist、图标以及各语言的 InfoPlist.strings，
复制完成后将 nwjs.app 重命名为 <DisplayName>.app。
"""

import plistlib
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Tuple

from ...config.schema import MacConfig
from ...utils.logging import debug, info, LogStage
from ..build_context import Platform, TargetContext
from ..runtime import MAC_BUNDLE, MAC_ICON, MAC_INFO_PLIST
from .base import PlatformFinisher

# "CF" 的 UTF-16LE 字节；这些文件里的键都以 CF 开头
_UTF16_MARKER = b"C\x00F\x00"

_XML_ENCODING_RE = re.compile(r"""(<\?xml[^>]*?)\s+encoding=["'][^"']*["']""")

_STRINGS_ENTRY_RE = re.compile(r'([A-Za-z]+)\s+=\s+"(.+?)";')


def detect_encoding(data: bytes) -> str:
    """根据原始字节判断文本编码

    出现 "CF" 的 UTF-16 拼写即视为 UTF-16LE，否则按 UTF-8 处理。
    """
    return "utf-16-le" if _UTF16_MARKER in data else "utf-8"


def read_plist(path: Path) -> Tuple[Dict[str, Any], Any]:
    """读取 plist，返回 (内容, 格式)

    二进制 plist 原样解析；文本 plist 先按探测到的编码解码，
    去掉 XML 声明中的编码后交给 plistlib。
    """
    raw = path.read_bytes()
    if raw.startswith(b"bplist"):
        return plistlib.loads(raw, fmt=plistlib.FMT_BINARY), plistlib.FMT_BINARY

    text = raw.decode(detect_encoding(raw)).lstrip("\ufeff")
    text = _XML_ENCODING_RE.sub(r"\1", text, count=1)
    return plistlib.loads(text.encode("utf-8"), fmt=plistlib.FMT_XML), plistlib.FMT_XML


def write_plist(path: Path, data: Dict[str, Any], fmt: Any = plistlib.FMT_XML) -> None:
    """写入 plist（文本格式统一写为 UTF-8）"""
    path.write_bytes(plistlib.dumps(data, fmt=fmt))


def rewrite_strings(text: str, mac: MacConfig) -> str:
    """替换 InfoPlist.strings 中已知的键，其余条目保持不变"""
    replacements = {
        "CFBundleName": mac.name,
        "CFBundleDisplayName": mac.display_name,
        "CFBundleGetInfoString": mac.version,
        "NSContactsUsageDescription": mac.description,
        "NSHumanReadableCopyright": mac.copyright,
    }

    def replace(match: "re.Match[str]") -> str:
        key, value = match.group(1), match.group(2)
        return f'{key} = "{replacements.get(key, value)}";'

    return _STRINGS_ENTRY_RE.sub(replace, text)


class MacFinisher(PlatformFinisher):
    """macOS 收尾处理"""

    platform = Platform.MAC

    def prepare(self, context: TargetContext) -> None:
        self.update_plist(context)
        self.update_icon(context)
        self.update_strings(context)

    def update_plist(self, context: TargetContext) -> None:
        """更新应用包标识、名称与版本"""
        path = context.target_dir / MAC_INFO_PLIST
        plist, fmt = read_plist(path)

        mac = context.config.mac
        plist["CFBundleIdentifier"] = context.config.app_id
        plist["CFBundleName"] = mac.name
        plist["CFBundleDisplayName"] = mac.display_name
        plist["CFBundleVersion"] = mac.version
        plist["CFBundleShortVersionString"] = mac.version

        write_plist(path, plist, fmt)
        if not context.options.quiet:
            info(f"更新 Info.plist: {context.config.app_id}", stage=LogStage.PATCH)

    def update_icon(self, context: TargetContext) -> None:
        """用自定义图标覆盖应用包图标"""
        icon = context.config.mac.icon
        if not icon:
            return
        shutil.copyfile(context.project_dir / icon, context.target_dir / MAC_ICON)

    def update_strings(self, context: TargetContext) -> None:
        """改写所有本地化 InfoPlist.strings，保持各文件原有编码"""
        for path in sorted(context.target_dir.rglob("InfoPlist.strings")):
            raw = path.read_bytes()
            encoding = detect_encoding(raw)
            text = rewrite_strings(raw.decode(encoding), context.config.mac)
            path.write_bytes(text.encode(encoding))
            debug(f"改写 {path.relative_to(context.target_dir)} ({encoding})", stage=LogStage.PATCH)

    def finalize(self, context: TargetContext) -> Path:
        src = context.target_dir / MAC_BUNDLE
        dest = context.target_dir / f"{context.config.mac.display_name}.app"
        return self._rename(src, dest)
