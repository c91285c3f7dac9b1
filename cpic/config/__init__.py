"""配置和 Schema 模块

提供构建配置的定义，以及 YAML 构建描述文件的加载、验证和保存。
"""

from .schema import (
    CpicConfig,
    CompressionFormat,
    CompressionModel,
    OemModel,
    DEFAULT_CONFIG_PATH,
    DEFAULT_OEM_DIRECTORIES,
    DEFAULT_OEM_TARGET,
)
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ConfigError,
    load_config,
    validate_config,
    save_config,
    config_loader,
)

__all__ = [
    # 模型
    "CpicConfig",
    "CompressionFormat",
    "CompressionModel",
    "OemModel",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_OEM_DIRECTORIES",
    "DEFAULT_OEM_TARGET",
    "ConfigLoader",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "load_config",
    "validate_config",
    "save_config",

    # 单例
    "config_loader",
]
