"""
配置 Schema 定义

使用 Pydantic 定义构建配置模型。配置在命令行边界构建一次，
然后显式传入构建管道，核心代码不读取任何全局状态。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.paths import is_safe_entry_name

# 默认的 cloud-config 文件路径
DEFAULT_CONFIG_PATH = "cloud-config.yml"

# 注入到镜像中的 OEM 目录与文件
DEFAULT_OEM_DIRECTORIES = ["usr", "usr/share", "usr/share/oem"]
DEFAULT_OEM_TARGET = "usr/share/oem/cloud-config.yml"


class CompressionFormat(str, Enum):
    """压缩格式枚举"""
    GZIP = "gzip"
    ZSTD = "zstd"


class CompressionModel(BaseModel):
    """输出镜像压缩配置"""
    format: CompressionFormat = Field(
        CompressionFormat.GZIP,
        description="输出镜像的压缩格式"
    )
    level: Optional[int] = Field(
        None,
        description="压缩级别，留空使用格式默认值",
        ge=1,
        le=22
    )

    @model_validator(mode='after')
    def validate_compression_level(self) -> 'CompressionModel':
        """验证压缩级别对格式的适用性"""
        if self.level is None:
            return self
        if self.format == CompressionFormat.GZIP:
            # gzip 只支持 1-9 级别
            if not 1 <= self.level <= 9:
                raise ValueError("gzip 压缩级别必须在 1-9 之间")
        elif self.format == CompressionFormat.ZSTD:
            if not 1 <= self.level <= 22:
                raise ValueError("Zstd 压缩级别必须在 1-22 之间")
        return self


class OemModel(BaseModel):
    """注入条目配置"""
    directories: List[str] = Field(
        default_factory=lambda: list(DEFAULT_OEM_DIRECTORIES),
        description="按顺序写入的目录条目（父目录在前）"
    )
    target: str = Field(
        DEFAULT_OEM_TARGET,
        description="cloud-config 在镜像中的条目名"
    )

    @field_validator('directories')
    @classmethod
    def validate_directories(cls, v: List[str]) -> List[str]:
        """验证目录条目名"""
        cleaned = []
        for name in v:
            name = name.strip().rstrip('/')
            if not is_safe_entry_name(name):
                raise ValueError(f"无效的目录条目名: {name!r}")
            if name in cleaned:
                raise ValueError(f"目录条目重复: {name}")
            cleaned.append(name)
        return cleaned

    @field_validator('target')
    @classmethod
    def validate_target(cls, v: str) -> str:
        """验证文件条目名"""
        v = v.strip()
        if not is_safe_entry_name(v) or v.endswith('/'):
            raise ValueError(f"无效的文件条目名: {v!r}")
        return v

    @model_validator(mode='after')
    def validate_target_not_directory(self) -> 'OemModel':
        if self.target in self.directories:
            raise ValueError(f"文件条目与目录条目重名: {self.target}")
        return self


class CpicConfig(BaseModel):
    """cpic 主配置模型

    描述一次镜像重打包：源镜像、输出位置、要注入的 cloud-config 文件。
    """

    source: Path = Field(..., description="源 PXE 镜像 (.cpio.gz)")
    output: Optional[Path] = Field(
        None,
        description="输出文件路径，留空则使用源镜像的文件名（位于当前目录）"
    )
    cloud_config: Path = Field(
        Path(DEFAULT_CONFIG_PATH),
        description="要注入的 cloud-config 文件"
    )
    temp_dir: Optional[Path] = Field(
        None,
        description="临时文件目录，留空则使用输出文件所在目录"
    )
    keep_temp_on_failure: bool = Field(
        False,
        description="构建失败时是否保留临时文件"
    )
    compression: CompressionModel = Field(default_factory=CompressionModel, description="压缩配置")
    oem: OemModel = Field(default_factory=OemModel, description="注入条目配置")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @property
    def output_path(self) -> Path:
        """最终输出路径"""
        if self.output is not None:
            return self.output
        return Path(self.source.name)

    @property
    def temp_directory(self) -> Path:
        """临时文件所在目录

        默认与输出文件同目录，保证最终的重命名不跨文件系统。
        """
        if self.temp_dir is not None:
            return self.temp_dir
        return self.output_path.parent

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            else:
                return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CpicConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
