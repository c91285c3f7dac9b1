"""
转录步骤模块

把源镜像中的全部条目复制到输出镜像。
"""

from ...utils import format_size
from ...utils.logging import info, success, debug, LogStage
from ...image import CompressionError, CpioError, DecompressionError, Header, copy_archive
from cpic.build.build_context import BuildContext, BuildError, PipelineState
from .build_step import BuildStep

# 每复制多少个条目报告一次进度
REPORT_INTERVAL = 500


class TranscodeStep(BuildStep):
    """转录步骤"""

    def __init__(self):
        super().__init__("transcode", "复制源镜像条目")

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 80)

    def execute(self, context: BuildContext) -> None:
        """复制源镜像条目"""
        context.transition(PipelineState.TRANSCODE)
        info("复制源镜像条目", stage=LogStage.TRANSCODE)
        progress_start, progress_end = self.get_progress_range()
        context.report("复制条目", progress_start, "开始复制...")

        count = 0

        def on_entry(header: Header, skipped: bool) -> None:
            nonlocal count
            count += 1
            if skipped:
                debug(f"跳过根目录标记: {header.display_name}", stage=LogStage.TRANSCODE)
            else:
                debug(f"{header.type.name:<12} {header.mode:04o} {header.size:>10} {header.display_name}", stage=LogStage.TRANSCODE)
            if count % REPORT_INTERVAL == 0:
                context.report("复制条目", progress_start, f"已复制 {count} 个条目")

        try:
            stats = copy_archive(context.writer, context.reader, on_entry=on_entry)
        except DecompressionError as e:
            raise BuildError(f"源镜像解压失败: {e}") from e
        except CpioError as e:
            raise BuildError(f"源镜像条目复制失败: {e}") from e
        except CompressionError as e:
            raise BuildError(f"输出镜像压缩失败: {e}") from e
        except OSError as e:
            raise BuildError(f"复制条目时发生 I/O 错误: {e}") from e

        context.transcode_stats = stats
        context.build_stats['entries_copied'] = stats.entries_copied
        context.build_stats['entries_skipped'] = stats.entries_skipped
        context.build_stats['bytes_copied'] = stats.bytes_copied

        context.report("复制条目", progress_end, f"完成，共 {stats.entries_copied} 个条目")
        success("源镜像条目复制完成", stage=LogStage.TRANSCODE)
        info(f"  条目数量: {stats.entries_copied}")
        info(f"  数据大小: {format_size(stats.bytes_copied)}")
