"""
cpic - CoreOS PXE 镜像 cloud-config 注入工具

Repackages a gzip-compressed cpio PXE image and embeds a cloud-config file.
"""

__version__ = "0.1.0"
__license__ = "BSD-3-Clause"

from .config.schema import CpicConfig
from .build.builder import Builder

__all__ = ["CpicConfig", "Builder", "__version__"]
