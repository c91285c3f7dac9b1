"""
构建管道模块

使用管道模式协调构建步骤的执行，并负责在任何退出路径上释放资源。
"""

import time
from contextlib import ExitStack
from typing import List, Optional

from ..config.schema import CpicConfig
from ..utils import format_size
from ..utils.logging import info, success, error, debug, LogStage
from .build_context import BuildContext, BuildError, PipelineState, ProgressCallback
from .steps.build_step import BuildStep
from .steps.open_source_step import OpenSourceStep
from .steps.open_output_step import OpenOutputStep
from .steps.transcode_step import TranscodeStep
from .steps.append_step import AppendStep
from .steps.finalize_step import FinalizeStep
from .steps.publish_step import PublishStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        """初始化构建管道"""
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的构建步骤"""
        self._steps = [
            OpenSourceStep(),
            OpenOutputStep(),
            TranscodeStep(),
            AppendStep(),
            FinalizeStep(),
            PublishStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        config: CpicConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            config: 配置对象
            progress_callback: 进度回调函数

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 任一步骤失败，step 属性为失败的步骤名
        """
        context = BuildContext(config=config, progress_callback=progress_callback)
        context.build_stats['start_time'] = time.time()

        info(f"开始重打包镜像: {config.source} -> {config.output_path}", stage=LogStage.INIT)
        debug(
            f"构建配置: cloud_config={config.cloud_config} format={config.compression.format.value} "
            f"temp_dir={config.temp_directory}",
            stage=LogStage.INIT,
        )

        step = None
        try:
            with ExitStack() as resources:
                context.resources = resources
                for step in self._steps:
                    info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                    step.execute(context)
        except Exception as e:
            context.state = PipelineState.FAILED
            context.build_stats['end_time'] = time.time()
            step_name = step.name if step else "init"

            error(f"步骤 '{step_name}' 失败: {e}", stage=LogStage.DONE)
            raise BuildError(f"步骤 '{step_name}' 失败: {e}", step=step_name) from e
        finally:
            context.resources = None

        context.build_stats['end_time'] = time.time()
        build_time = context.build_stats['end_time'] - context.build_stats['start_time']

        success(f"镜像重打包成功: {config.output_path}", stage=LogStage.DONE)
        info(f"构建时间: {build_time:.1f}秒")
        info(f"复制条目: {context.build_stats['entries_copied']}")
        info(f"注入条目: {context.build_stats['entries_appended']}")
        info(f"源镜像大小: {format_size(context.build_stats['source_size'])}")
        info(f"输出镜像大小: {format_size(context.build_stats['output_size'])}")

        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 检查步骤的进度范围是否连续
        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
