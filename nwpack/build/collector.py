"""
文件收集器

根据包含模式收集项目文件，并应用分层排除规则：
项目声明的排除项、通用排除项、运行时不需要的依赖目录以及输出目录本身。
"""

import os
import re
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Pattern, Sequence, Set

from ..config.schema import BuildConfig

# 通用排除项：编辑器/版本控制产物、依赖中的示例与测试目录、依赖的 .bin 目录
GENERAL_EXCLUDES = [
    "**/node_modules/.bin",
    "**/node_modules/*/{example,examples,test,tests}",
    "**/{.DS_Store,.git,.hg,.svn,*.log}",
]

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> List[str]:
    """展开 {a,b} 形式的可选项

    Examples:
        >>> expand_braces("*.{js,css}")
        ['*.js', '*.css']
    """
    match = _BRACE_RE.search(pattern)
    if not match:
        return [pattern]

    head, tail = pattern[:match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option.strip() + tail))
    return expanded


def _translate_segment(segment: str, dot: bool) -> str:
    """把单个路径片段翻译为正则（不跨越 /）"""
    out = []
    i = 0
    while i < len(segment):
        char = segment[i]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = segment.find("]", i + 1)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = segment[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(char))
        i += 1

    regex = "".join(out)
    # 点开头的名字只有在模式显式写出点时才匹配
    if not dot and not segment.startswith("."):
        regex = r"(?!\.)" + regex
    return regex


def translate_glob(pattern: str, dot: bool = False) -> str:
    """把 glob 模式（支持 * ? [..] **）翻译为完整匹配的正则"""
    segments = [s for s in pattern.strip("/").split("/") if s not in ("", ".")]
    any_segment = r"[^/]*" if dot else r"(?!\.)[^/]*"

    regex = ""
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            if not last:
                regex += f"(?:{any_segment}/)*"
            elif regex:
                regex = regex[:-1] + f"(?:/{any_segment})*"
            else:
                regex += f"(?:{any_segment}(?:/{any_segment})*)?"
        else:
            regex += _translate_segment(segment, dot) + ("" if last else "/")

    return regex


def compile_patterns(patterns: Iterable[str], dot: bool = False) -> List[Pattern[str]]:
    """编译一组 glob 模式（先展开花括号）"""
    compiled = []
    for pattern in patterns:
        for expanded in expand_braces(pattern.replace("\\", "/")):
            compiled.append(re.compile(translate_glob(expanded, dot) + r"\Z"))
    return compiled


def build_exclude_patterns(config: BuildConfig, excludable_dependencies: Sequence[str] = ()) -> List[str]:
    """组合完整的排除模式列表

    Args:
        config: 构建配置
        excludable_dependencies: 运行时不需要的顶层依赖目录名

    Returns:
        List[str]: 排除模式
    """
    dependency_excludes = []
    for name in excludable_dependencies:
        dependency_excludes.extend([f"node_modules/{name}", f"node_modules/{name}/**/*"])

    output = config.output_dir_name

    return [
        *config.excludes,
        *GENERAL_EXCLUDES,
        *dependency_excludes,
        output,
        f"{output}/**/*",
    ]


class FileCollector:
    """文件收集器

    遍历项目根目录（跟随符号链接，防止循环），返回排序后的相对路径列表；
    目录以 / 结尾标记。被排除的目录连同其全部内容一起排除。
    """

    def __init__(self):
        self.collected_files: List[str] = []

    def collect_files(self, root: Path, patterns: Sequence[str], exclude_patterns: Optional[Sequence[str]] = None) -> List[str]:
        """收集文件

        Args:
            root: 项目根目录
            patterns: 包含模式
            exclude_patterns: 排除模式

        Returns:
            List[str]: 相对 root 的 posix 路径，目录带 / 后缀
        """
        root = Path(root)
        includes = compile_patterns(patterns, dot=False)
        excludes = compile_patterns(exclude_patterns or [], dot=True)

        collected: Set[str] = set()
        # 每个待遍历目录的祖先链（真实路径）；只有指回祖先的链接才构成循环
        ancestors: Dict[str, FrozenSet[str]] = {os.fspath(root): frozenset()}

        for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
            real = os.path.realpath(dirpath)
            chain = ancestors.pop(dirpath, frozenset())
            if real in chain:
                # 符号链接形成的循环
                dirnames[:] = []
                continue
            chain = chain | {real}

            rel_dir = Path(dirpath).relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else rel_dir + "/"

            kept_dirs = []
            for name in sorted(dirnames):
                rel = prefix + name
                if self._matches(rel, excludes):
                    continue
                kept_dirs.append(name)
                if self._matches(rel, includes):
                    collected.add(rel + "/")
            dirnames[:] = kept_dirs
            for name in kept_dirs:
                ancestors[os.path.join(dirpath, name)] = chain

            for name in filenames:
                rel = prefix + name
                if not os.path.exists(os.path.join(dirpath, name)):
                    # 损坏的符号链接
                    continue
                if self._matches(rel, excludes):
                    continue
                if self._matches(rel, includes):
                    collected.add(rel)

        self.collected_files = sorted(collected)
        return self.collected_files

    def collect_project_files(self, project_dir: Path, config: BuildConfig, excludable_dependencies: Sequence[str] = ()) -> List[str]:
        """按构建配置收集项目文件"""
        excludes = build_exclude_patterns(config, excludable_dependencies)
        return self.collect_files(project_dir, config.files, excludes)

    def get_statistics(self) -> Dict[str, int]:
        """获取收集统计信息"""
        dir_count = sum(1 for f in self.collected_files if f.endswith("/"))
        return {
            'total_files': len(self.collected_files) - dir_count,
            'total_directories': dir_count,
            'total_items': len(self.collected_files),
        }

    @staticmethod
    def _matches(path: str, patterns: List[Pattern[str]]) -> bool:
        return any(p.match(path) for p in patterns)
