"""
收尾步骤模块

按固定顺序关闭写入器和读取器：写入器必须先关闭，
其 close() 会先写入 cpio 结束标记，再刷新压缩流。
"""

from ...utils.logging import info, debug, LogStage
from ...image import CompressionError, CpioError
from cpic.build.build_context import BuildContext, BuildError, PipelineState
from .build_step import BuildStep


class FinalizeStep(BuildStep):
    """关闭读写器步骤"""

    def __init__(self):
        super().__init__("finalize", "结束输出镜像")

    def get_progress_range(self) -> tuple[int, int]:
        return (90, 95)

    def execute(self, context: BuildContext) -> None:
        """关闭写入器、临时文件、读取器和源文件"""
        context.transition(PipelineState.CLOSE_WRITER)
        info("结束输出镜像", stage=LogStage.CLOSE)
        try:
            context.writer.close()
            context.temp_file.close()
        except (CpioError, CompressionError) as e:
            raise BuildError(f"结束输出镜像失败: {e}") from e
        except OSError as e:
            raise BuildError(f"写入临时文件失败: {e}") from e

        context.build_stats['output_size'] = context.temp_path.stat().st_size
        debug(f"输出镜像已写入临时文件: {context.temp_path}", stage=LogStage.CLOSE)

        context.transition(PipelineState.CLOSE_READER)
        try:
            context.reader.close()
            context.source_file.close()
        except OSError as e:
            raise BuildError(f"关闭源镜像失败: {e}") from e

        context.report("结束输出镜像", self.get_progress_range()[1], "")
