"""NSIS 安装器脚本生成与编译"""

from .compiler import find_makensis, nsis_build
from .generator import Nsis7Zipper, NsisComposer, NsisDiffer, NsisOptions, diff_trees

__all__ = [
    "NsisOptions",
    "NsisComposer",
    "Nsis7Zipper",
    "NsisDiffer",
    "diff_trees",
    "find_makensis",
    "nsis_build",
]
