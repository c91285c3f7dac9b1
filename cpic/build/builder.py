"""
构建器主类

负责整个重打包流程的协调，使用管道模式组织构建步骤。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config.schema import CpicConfig
from .build_pipeline import BuildPipeline
from .build_context import BuildError, ProgressCallback


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    output_path: Optional[Path] = None
    output_size: Optional[int] = None
    build_time: Optional[float] = None
    entries_copied: int = 0
    entries_appended: int = 0
    error: Optional[str] = None
    failed_step: Optional[str] = None


class Builder:
    """镜像构建器

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(self, pipeline: Optional[BuildPipeline] = None):
        self.pipeline = pipeline or BuildPipeline()

    def build(
        self,
        config: CpicConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """重打包镜像

        Args:
            config: 配置对象
            progress_callback: 进度回调函数

        Returns:
            BuildResult: 构建结果，失败时 success 为 False
        """
        try:
            context = self.pipeline.execute(config, progress_callback)
        except BuildError as e:
            return BuildResult(
                success=False,
                error=str(e),
                failed_step=e.step,
            )

        stats = context.build_stats
        return BuildResult(
            success=True,
            output_path=context.output_path,
            output_size=stats['output_size'],
            build_time=stats['end_time'] - stats['start_time'],
            entries_copied=stats['entries_copied'],
            entries_appended=stats['entries_appended'],
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline
