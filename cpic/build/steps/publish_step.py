"""
发布步骤模块

把写好的临时文件原子地重命名到最终输出路径。
这是唯一会触碰最终输出路径的步骤。
"""

import os

from ...utils.logging import info, success, LogStage
from cpic.build.build_context import BuildContext, BuildError, PipelineState
from .build_step import BuildStep


class PublishStep(BuildStep):
    """发布步骤"""

    def __init__(self):
        super().__init__("publish", "发布输出镜像")

    def get_progress_range(self) -> tuple[int, int]:
        return (95, 100)

    def execute(self, context: BuildContext) -> None:
        """重命名临时文件到输出路径"""
        if context.writer is None or not context.writer.closed:
            raise BuildError("输出镜像尚未结束，不能发布")

        context.transition(PipelineState.PUBLISH)
        output_path = context.output_path
        info(f"发布输出镜像: {output_path}", stage=LogStage.PUBLISH)

        try:
            os.replace(context.temp_path, output_path)
        except OSError as e:
            raise BuildError(f"无法把 {context.temp_path} 重命名为 {output_path}: {e}") from e

        context.published = True
        context.transition(PipelineState.DONE)

        context.report("发布输出镜像", self.get_progress_range()[1], str(output_path))
        success(f"输出镜像已发布: {output_path}", stage=LogStage.PUBLISH)
