"""
nwpack - NW.js 桌面应用打包工具

Package NW.js applications into per-platform directories, archives and Windows installers.
"""

__version__ = "0.1.0"

from .build.builder import Builder
from .config.schema import BuildConfig, BuilderOptions

__all__ = ["Builder", "BuildConfig", "BuilderOptions", "__version__"]
