"""构建服务模块

提供镜像重打包的核心流程。
"""

from .build_context import BuildContext, BuildError, PipelineState
from .build_pipeline import BuildPipeline
from .builder import Builder, BuildResult

__all__ = [
    "BuildContext",
    "BuildError",
    "PipelineState",
    "BuildPipeline",
    "Builder",
    "BuildResult",
]
