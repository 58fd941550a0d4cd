"""
安装器版本登记表

输出目录下的 versions.nsis.json 记录每个已构建版本的目标目录、
各架构的完整安装器以及差量更新安装器，用于生成后续版本的差量更新。

文件格式::

    {
      "1.0.0": {
        "source": "app-1.0.0-win-x64",
        "installers": {"x64": "app-1.0.0-win-x64-Setup.exe"},
        "updaters": {"0.9.0": {"x64": "app-1.0.0-from-0.9.0-win-x64-Update.exe"}}
      }
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import semver

from ..utils.logging import debug, LogStage

REGISTRY_FILENAME = "versions.nsis.json"


@dataclass
class VersionEntry:
    """单个版本的登记信息"""
    version: str
    source: str
    installers: Dict[str, str] = field(default_factory=dict)
    updaters: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "installers": dict(self.installers),
            "updaters": {k: dict(v) for k, v in self.updaters.items()},
        }

    @classmethod
    def from_dict(cls, version: str, data: Dict[str, Any]) -> "VersionEntry":
        return cls(
            version=version,
            source=data.get("source", ""),
            installers=dict(data.get("installers") or {}),
            updaters={k: dict(v) for k, v in (data.get("updaters") or {}).items()},
        )


def parse_version(version: str) -> semver.Version:
    """解析语义化版本，允许 v 前缀"""
    return semver.Version.parse(version.lstrip("v"))


class VersionRegistry:
    """版本登记表

    并非并发安全：同一输出目录同一时间只应有一个写入者。
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.base_dir = self.path.parent
        self.entries: Dict[str, VersionEntry] = {}

    @classmethod
    def for_output(cls, output_dir: Union[str, Path]) -> "VersionRegistry":
        """打开输出目录下的登记表"""
        registry = cls(Path(output_dir) / REGISTRY_FILENAME)
        registry.load()
        return registry

    def load(self) -> "VersionRegistry":
        """从磁盘读取；文件不存在时为空表"""
        self.entries = {}
        if self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            for version, entry in data.items():
                self.entries[version] = VersionEntry.from_dict(version, entry)
            debug(f"读取版本登记表: {len(self.entries)} 个版本", stage=LogStage.REGISTRY)
        return self

    def save(self) -> None:
        """写回磁盘，先写临时文件再替换，中途失败不会破坏旧文件"""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        data = {v: self.entries[v].to_dict() for v in self.get_versions()}
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
        debug(f"保存版本登记表: {self.path}", stage=LogStage.REGISTRY)

    def _relative(self, path: Union[str, Path]) -> str:
        """尽量保存为相对于输出目录的路径"""
        path = Path(path)
        if not path.is_absolute():
            return path.as_posix()
        try:
            return path.relative_to(self.base_dir).as_posix()
        except ValueError:
            return str(path)

    def resolve(self, path: str) -> Path:
        """把登记的路径解析为绝对路径"""
        return self.base_dir / path

    def add_version(self, version: str, source: Union[str, Path]) -> VersionEntry:
        """登记版本；已存在时只更新 source，保留安装器与更新器记录"""
        parse_version(version)
        entry = self.entries.get(version)
        if entry is None:
            entry = VersionEntry(version=version, source=self._relative(source))
            self.entries[version] = entry
        else:
            entry.source = self._relative(source)
        return entry

    def add_installer(self, version: str, arch: str, path: Union[str, Path]) -> None:
        self._require(version).installers[arch] = self._relative(path)

    def add_updater(self, to_version: str, from_version: str, arch: str, path: Union[str, Path]) -> None:
        self._require(to_version).updaters.setdefault(from_version, {})[arch] = self._relative(path)

    def get_versions(self) -> List[str]:
        """按语义化版本升序返回所有版本"""
        return sorted(self.entries, key=parse_version)

    def get_version(self, version: str) -> Optional[VersionEntry]:
        return self.entries.get(version)

    def older_versions(self, version: str) -> List[str]:
        """严格早于指定版本的已登记版本"""
        current = parse_version(version)
        return [v for v in self.get_versions() if parse_version(v) < current]

    def _require(self, version: str) -> VersionEntry:
        entry = self.entries.get(version)
        if entry is None:
            raise KeyError(f"版本未登记: {version}")
        return entry
