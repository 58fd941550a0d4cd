"""通用工具模块"""

from .logging import (
    LogStage,
    OutputLevel,
    configure_logging,
    debug,
    error,
    info,
    set_log_file,
    set_log_level,
    success,
    warning,
)
from .paths import (
    copy_file,
    empty_directory,
    ensure_directory,
    format_size,
    remove_path,
    tmp_name,
)

__all__ = [
    # 日志相关
    "LogStage",
    "OutputLevel",
    "configure_logging",
    "debug",
    "error",
    "info",
    "set_log_file",
    "set_log_level",
    "success",
    "warning",

    # 路径相关
    "copy_file",
    "empty_directory",
    "ensure_directory",
    "format_size",
    "remove_path",
    "tmp_name",
]
