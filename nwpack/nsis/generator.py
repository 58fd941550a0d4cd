"""
NSIS 脚本生成器

三种脚本共享同一份元数据 (NsisOptions)：
- NsisComposer: 完整安装器，直接打包当前目录（makensis 以 /NOCD 在目标目录中运行）
- Nsis7Zipper: 自解压安装器，内嵌 7z 快照，安装时解压
- NsisDiffer: 差量更新安装器，只包含两个目标目录之间新增或变化的文件
"""

import filecmp
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import List, Optional, Tuple, Union


@dataclass
class NsisOptions:
    """安装器元数据"""
    app_name: str
    version: str
    output: Path
    company_name: str = ""
    description: str = ""
    copyright: str = ""
    icon: Optional[Path] = None
    un_icon: Optional[Path] = None
    compression: str = "lzma"
    solid: bool = True
    languages: List[str] = field(default_factory=lambda: ["English"])
    install_directory: Optional[str] = None


def escape(value: Union[str, Path]) -> str:
    """转义 NSIS 字符串中的 $ 和双引号"""
    return str(value).replace("$", "$$").replace('"', '$\\"')


def windows_path(relative: str) -> str:
    """posix 相对路径转为 Windows 反斜杠路径"""
    return str(PureWindowsPath(*relative.split("/")))


class NsisComposer:
    """完整安装器脚本"""

    def __init__(self, options: NsisOptions):
        self.options = options

    @property
    def install_dir(self) -> str:
        if self.options.install_directory:
            return self.options.install_directory
        return f"$LOCALAPPDATA\\{escape(self.options.app_name)}"

    def make(self) -> str:
        """生成完整脚本文本"""
        lines: List[str] = []
        lines.extend(self.make_header())
        lines.append("")
        lines.extend(self.make_pages())
        lines.append("")
        lines.append("Section -Install")
        lines.extend(f"  {line}" for line in self.make_install())
        lines.append("SectionEnd")
        uninstall = self.make_uninstall()
        if uninstall:
            lines.append("")
            lines.append("Section Uninstall")
            lines.extend(f"  {line}" for line in uninstall)
            lines.append("SectionEnd")
        lines.append("")
        return "\r\n".join(lines)

    def make_header(self) -> List[str]:
        opts = self.options
        compressor = f"SetCompressor {'/SOLID ' if opts.solid else ''}{opts.compression}"

        lines = [
            "; AUTO-GENERATED",
            "Unicode true",
            compressor,
            "",
            '!include "MUI2.nsh"',
            "",
            f'Name "{escape(opts.app_name)}"',
            f'Caption "{escape(opts.app_name)}"',
            f'BrandingText "{escape(opts.app_name)}"',
            f'OutFile "{escape(opts.output)}"',
            f'InstallDir "{self.install_dir}"',
            "RequestExecutionLevel user",
            "ShowInstDetails show",
            "",
            f'VIProductVersion "{opts.version}"',
            f'VIAddVersionKey "ProductName" "{escape(opts.app_name)}"',
            f'VIAddVersionKey "CompanyName" "{escape(opts.company_name)}"',
            f'VIAddVersionKey "FileDescription" "{escape(opts.description)}"',
            f'VIAddVersionKey "LegalCopyright" "{escape(opts.copyright)}"',
            f'VIAddVersionKey "FileVersion" "{opts.version}"',
            f'VIAddVersionKey "ProductVersion" "{opts.version}"',
        ]
        if opts.icon:
            lines.append(f'!define MUI_ICON "{escape(opts.icon)}"')
        if opts.un_icon:
            lines.append(f'!define MUI_UNICON "{escape(opts.un_icon)}"')
        return lines

    def make_pages(self) -> List[str]:
        lines = [
            "!insertmacro MUI_PAGE_DIRECTORY",
            "!insertmacro MUI_PAGE_INSTFILES",
            "!insertmacro MUI_PAGE_FINISH",
            "!insertmacro MUI_UNPAGE_CONFIRM",
            "!insertmacro MUI_UNPAGE_INSTFILES",
        ]
        for language in self.options.languages:
            lines.append(f'!insertmacro MUI_LANGUAGE "{escape(language)}"')
        return lines

    def make_install(self) -> List[str]:
        return [
            'SetOutPath "$INSTDIR"',
            'File /r ".\\*.*"',
            *self.make_register(),
        ]

    def make_register(self) -> List[str]:
        """写入卸载程序与快捷方式"""
        name = escape(self.options.app_name)
        return [
            'WriteUninstaller "$INSTDIR\\Uninstall.exe"',
            f'CreateShortCut "$DESKTOP\\{name}.lnk" "$INSTDIR\\{name}.exe"',
            f'CreateDirectory "$SMPROGRAMS\\{name}"',
            f'CreateShortCut "$SMPROGRAMS\\{name}\\{name}.lnk" "$INSTDIR\\{name}.exe"',
            f'CreateShortCut "$SMPROGRAMS\\{name}\\Uninstall.lnk" "$INSTDIR\\Uninstall.exe"',
        ]

    def make_uninstall(self) -> List[str]:
        name = escape(self.options.app_name)
        return [
            f'Delete "$DESKTOP\\{name}.lnk"',
            f'RMDir /r "$SMPROGRAMS\\{name}"',
            'RMDir /r "$INSTDIR"',
        ]


class Nsis7Zipper(NsisComposer):
    """自解压安装器脚本（需要 Nsis7z 插件）"""

    def __init__(self, archive: Union[str, Path], options: NsisOptions):
        super().__init__(options)
        self.archive = Path(archive)

    def make_install(self) -> List[str]:
        return [
            "InitPluginsDir",
            'SetOutPath "$PLUGINSDIR"',
            f'File "/oname=$PLUGINSDIR\\app.7z" "{escape(self.archive)}"',
            'SetOutPath "$INSTDIR"',
            'Nsis7z::ExtractWithDetails "$PLUGINSDIR\\app.7z" "Installing %s..."',
            'Delete "$PLUGINSDIR\\app.7z"',
            *self.make_register(),
        ]


def diff_trees(from_dir: Union[str, Path], to_dir: Union[str, Path]) -> Tuple[List[str], List[str]]:
    """比较两个目录树

    Returns:
        Tuple[List[str], List[str]]: (新增或变化的文件, 删除的文件与目录)，均为 posix 相对路径
    """
    changed: List[str] = []
    removed: List[str] = []

    def walk(cmp: filecmp.dircmp, prefix: str) -> None:
        for name in sorted(cmp.right_only):
            rel = prefix + name
            path = Path(cmp.right) / name
            if path.is_dir() and not path.is_symlink():
                changed.extend(
                    rel + "/" + p.relative_to(path).as_posix()
                    for p in sorted(path.rglob("*"))
                    if p.is_symlink() or not p.is_dir()
                )
            else:
                changed.append(rel)
        for name in sorted(cmp.left_only):
            removed.append(prefix + name)
        # dircmp 的浅比较只看 stat，这里逐字节比较
        for name in sorted(cmp.common_files):
            if not filecmp.cmp(Path(cmp.left) / name, Path(cmp.right) / name, shallow=False):
                changed.append(prefix + name)
        for name in sorted(cmp.common_funny):
            changed.append(prefix + name)
        for name, sub in sorted(cmp.subdirs.items()):
            walk(sub, prefix + name + "/")

    walk(filecmp.dircmp(str(from_dir), str(to_dir)), "")
    return changed, removed


class NsisDiffer(NsisComposer):
    """差量更新安装器脚本

    只携带 to_dir 中新增或变化的文件，并删除 from_dir 中独有的路径。
    makensis 需在 to_dir 中运行。
    """

    def __init__(self, from_dir: Union[str, Path], to_dir: Union[str, Path], options: NsisOptions):
        super().__init__(options)
        self.from_dir = Path(from_dir)
        self.to_dir = Path(to_dir)

    def make_install(self) -> List[str]:
        changed, removed = diff_trees(self.from_dir, self.to_dir)

        lines: List[str] = []
        for rel in removed:
            target = windows_path(rel)
            if (self.from_dir / rel).is_dir():
                lines.append(f'RMDir /r "$INSTDIR\\{escape(target)}"')
            else:
                lines.append(f'Delete "$INSTDIR\\{escape(target)}"')

        current_dir: Optional[str] = None
        for rel in changed:
            parent = rel.rpartition("/")[0]
            if parent != current_dir:
                out = "$INSTDIR" + (f"\\{escape(windows_path(parent))}" if parent else "")
                lines.append(f'SetOutPath "{out}"')
                current_dir = parent
            lines.append(f'File "{escape(windows_path(rel))}"')

        return lines

    def make_pages(self) -> List[str]:
        # 更新器没有卸载部分
        return [line for line in super().make_pages() if "MUI_UNPAGE" not in line]

    def make_uninstall(self) -> List[str]:
        return []
