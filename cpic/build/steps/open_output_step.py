"""
打开输出步骤模块

在临时目录中创建临时文件，并在其上建立 cpio 编码 + 压缩写入器。
最终输出路径在发布步骤之前不会被触碰。
"""

import tempfile
from pathlib import Path

from ...utils.logging import info, debug, warning, LogStage
from ...image import ArchiveWriter, CompressionError
from cpic.build.build_context import BuildContext, BuildError, PipelineState
from .build_step import BuildStep

TEMP_PREFIX = ".cpic-"
TEMP_SUFFIX = ".tmp"


class OpenOutputStep(BuildStep):
    """打开输出步骤"""

    def __init__(self):
        super().__init__("open_output", "创建临时输出")

    def get_progress_range(self) -> tuple[int, int]:
        return (5, 10)

    def execute(self, context: BuildContext) -> None:
        """创建临时文件与归档写入器"""
        config = context.config
        temp_dir = config.temp_directory
        context.transition(PipelineState.OPEN_TEMP_SINK)

        # 先登记清理回调，再登记文件本身：退出时文件先关闭，再删除
        context.resources.callback(_discard_temp_file, context)
        try:
            temp_file = tempfile.NamedTemporaryFile(
                dir=temp_dir, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, delete=False
            )
        except OSError as e:
            raise BuildError(f"无法在 {temp_dir} 中创建临时文件: {e}") from e

        context.temp_file = context.resources.enter_context(temp_file)
        context.temp_path = Path(temp_file.name)
        info(f"临时输出: {context.temp_path}", stage=LogStage.OPEN)

        context.transition(PipelineState.OPEN_WRITER)
        compression = config.compression
        try:
            writer = ArchiveWriter.open(context.temp_file, compression.format, compression.level)
        except CompressionError as e:
            raise BuildError(f"无法创建输出写入器: {e}") from e

        context.writer = context.resources.enter_context(writer)
        debug(f"输出压缩格式: {compression.format.value} 级别: {compression.level or '默认'}", stage=LogStage.OPEN)

        context.report("创建临时输出", self.get_progress_range()[1], str(context.temp_path))


def _discard_temp_file(context: BuildContext) -> None:
    """构建未发布时删除临时文件"""
    if context.published or context.temp_path is None:
        return
    if context.config.keep_temp_on_failure:
        warning(f"已保留临时文件: {context.temp_path}", stage=LogStage.CLOSE)
        return

    context.temp_path.unlink(missing_ok=True)
    debug(f"已删除临时文件: {context.temp_path}", stage=LogStage.CLOSE)
