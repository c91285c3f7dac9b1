"""
追加步骤模块

在所有原有条目之后写入 OEM 目录条目和 cloud-config 文件条目。
"""

from ...utils import format_size
from ...utils.logging import info, success, debug, LogStage
from ...image import CompressionError, CpioError, append_entries
from cpic.build.build_context import BuildContext, BuildError, PipelineState
from .build_step import BuildStep


class AppendStep(BuildStep):
    """追加 cloud-config 步骤"""

    def __init__(self):
        super().__init__("append", "注入 cloud-config")

    def get_progress_range(self) -> tuple[int, int]:
        return (80, 90)

    def execute(self, context: BuildContext) -> None:
        """写入 OEM 目录与 cloud-config"""
        context.transition(PipelineState.APPEND)
        oem = context.config.oem
        cloud_config = context.config.cloud_config
        info(f"注入 cloud-config: {cloud_config} -> {oem.target}", stage=LogStage.APPEND)

        try:
            headers = append_entries(context.writer, oem.directories, cloud_config, oem.target)
        except FileNotFoundError as e:
            raise BuildError(f"cloud-config 文件不存在: {cloud_config}") from e
        except PermissionError as e:
            raise BuildError(f"cloud-config 文件不可读: {cloud_config}") from e
        except (CpioError, CompressionError) as e:
            raise BuildError(f"写入注入条目失败: {e}") from e
        except OSError as e:
            raise BuildError(f"注入 cloud-config 时发生 I/O 错误: {e}") from e

        context.appended = headers
        context.build_stats['entries_appended'] = len(headers)

        for header in headers:
            debug(f"{header.type.name:<12} {header.mode:04o} {header.size:>10} {header.display_name}", stage=LogStage.APPEND)

        context.report("注入 cloud-config", self.get_progress_range()[1], oem.target)
        success(f"cloud-config 注入完成 ({format_size(headers[-1].size)})", stage=LogStage.APPEND)
