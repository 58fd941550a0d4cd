"""
依赖检查器

找出项目 node_modules 中运行时不需要的顶层依赖目录（开发依赖及残留包），
这些目录在打包时整体排除。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from ..utils.logging import debug, LogStage


def _read_package(package_dir: Path) -> Optional[Dict[str, Any]]:
    """读取依赖包的 package.json，缺失或损坏时返回 None"""
    manifest = package_dir / "package.json"
    if not manifest.is_file():
        return None
    try:
        with open(manifest, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        debug(f"无法解析依赖清单: {manifest}", stage=LogStage.COPY)
        return None
    return data if isinstance(data, dict) else None


def _runtime_dependency_names(manifest: Dict[str, Any]) -> List[str]:
    names = []
    for key in ("dependencies", "optionalDependencies"):
        names.extend((manifest.get(key) or {}).keys())
    return names


def _resolve(name: str, from_dir: Path, project_dir: Path) -> Optional[Path]:
    """按 Node 的查找规则从 from_dir 向上解析依赖目录"""
    current = from_dir
    while True:
        candidate = current / "node_modules" / name
        if candidate.is_dir():
            return candidate
        if current == project_dir or current.parent == current:
            return None
        current = current.parent


def find_excludable_dependencies(project_dir: Path, manifest: Dict[str, Any]) -> List[str]:
    """计算可以排除的顶层依赖目录

    Args:
        project_dir: 项目根目录
        manifest: 项目清单

    Returns:
        List[str]: node_modules 下可排除的目录名（作用域包形如 @scope/name），已排序
    """
    project_dir = Path(project_dir).resolve()
    modules_dir = project_dir / "node_modules"
    if not modules_dir.is_dir():
        return []

    # 顶层已安装的包
    installed: Set[str] = set()
    for entry in modules_dir.iterdir():
        if entry.name.startswith("."):
            continue
        if entry.name.startswith("@") and entry.is_dir():
            installed.update(f"{entry.name}/{child.name}" for child in entry.iterdir() if child.is_dir())
        elif entry.is_dir():
            installed.add(entry.name)

    # 从运行时依赖出发做可达性遍历
    required: Set[str] = set()
    visited: Set[Path] = set()
    stack = [(name, project_dir) for name in _runtime_dependency_names(manifest)]

    while stack:
        name, from_dir = stack.pop()
        package_dir = _resolve(name, from_dir, project_dir)
        if package_dir is None:
            continue

        real = package_dir.resolve()
        if real in visited:
            continue
        visited.add(real)

        parent = package_dir.parent
        if parent == modules_dir or (parent.parent == modules_dir and parent.name.startswith("@")):
            top = package_dir.relative_to(modules_dir).as_posix()
            required.add(top)

        package = _read_package(package_dir)
        if package:
            stack.extend((dep, package_dir) for dep in _runtime_dependency_names(package))

    excludable = sorted(installed - required)
    debug(f"可排除的依赖: {excludable}", stage=LogStage.COPY)
    return excludable
