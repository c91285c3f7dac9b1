"""通用工具模块"""

from .logging import (
    configure_logging,
    set_log_level,
    set_log_file,
    OutputLevel,
    LogStage,
)

from .paths import (
    expand_path,
    is_safe_entry_name,
    format_size,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "set_log_level",
    "set_log_file",
    "OutputLevel",
    "LogStage",

    # 路径相关
    "expand_path",
    "is_safe_entry_name",
    "format_size",
]
