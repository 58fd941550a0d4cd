"""配置和 Schema 模块

提供项目清单与构建器选项的加载、验证功能。
"""

from .schema import BuildConfig, BuilderOptions, MacConfig, NsisConfig, WinConfig
from .loader import (
    ConfigError,
    ConfigLoader,
    ConfigValidationError,
    config_loader,
    load_build_config,
    load_options,
    load_project,
)

__all__ = [
    # 主要类
    "BuildConfig",
    "BuilderOptions",
    "WinConfig",
    "MacConfig",
    "NsisConfig",
    "ConfigLoader",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "load_build_config",
    "load_options",
    "load_project",

    # 单例
    "config_loader",
]
