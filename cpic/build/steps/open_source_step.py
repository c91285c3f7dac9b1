"""
打开源镜像步骤模块

打开源镜像文件并在其上建立解压 + cpio 解码读取器。
"""

from ...utils import format_size
from ...utils.logging import info, debug, LogStage
from ...image import ArchiveReader, DecompressionError
from cpic.build.build_context import BuildContext, BuildError, PipelineState
from .build_step import BuildStep


class OpenSourceStep(BuildStep):
    """打开源镜像步骤"""

    def __init__(self):
        super().__init__("open_source", "打开源镜像")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 5)

    def execute(self, context: BuildContext) -> None:
        """打开源文件与归档读取器"""
        source_path = context.config.source
        context.transition(PipelineState.OPEN_SOURCE)
        info(f"打开源镜像: {source_path}", stage=LogStage.OPEN)

        try:
            context.source_file = context.resources.enter_context(open(source_path, 'rb'))
        except OSError as e:
            raise BuildError(f"无法打开源镜像 {source_path}: {e}") from e

        source_size = context.build_stats['source_size'] = source_path.stat().st_size
        debug(f"源镜像大小: {format_size(source_size)}", stage=LogStage.OPEN)

        context.transition(PipelineState.OPEN_READER)
        try:
            reader = ArchiveReader.open(context.source_file)
        except DecompressionError as e:
            raise BuildError(f"源镜像不是有效的压缩镜像: {e}") from e

        context.reader = context.resources.enter_context(reader)
        debug(f"源镜像压缩格式: {reader.format.value}", stage=LogStage.OPEN)

        context.report("打开源镜像", self.get_progress_range()[1], str(source_path))
