"""
构建上下文模块

定义构建过程中的共享数据结构、状态和异常类。
"""

from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional

from ..config.schema import CpicConfig
from ..image import ArchiveReader, ArchiveWriter, Header, TranscodeStats
from ..utils.logging import debug, LogStage

# 进度回调类型: (阶段, 当前进度, 总进度, 消息)
ProgressCallback = Callable[[str, int, int, str], None]


class PipelineState(str, Enum):
    """构建管道状态

    线性推进，任何一步失败都进入 FAILED。
    """
    OPEN_SOURCE = "open_source"
    OPEN_READER = "open_reader"
    OPEN_TEMP_SINK = "open_temp_sink"
    OPEN_WRITER = "open_writer"
    TRANSCODE = "transcode"
    APPEND = "append"
    CLOSE_WRITER = "close_writer"
    CLOSE_READER = "close_reader"
    PUBLISH = "publish"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildContext:
    """构建上下文，包含构建过程中的共享数据

    所有打开的资源都登记在 resources 上，由管道负责在任何退出路径上释放。
    """
    config: CpicConfig
    progress_callback: Optional[ProgressCallback] = None
    resources: Optional[ExitStack] = None
    state: PipelineState = PipelineState.OPEN_SOURCE

    # 构建过程中持有的资源
    source_file: Optional[BinaryIO] = None
    reader: Optional[ArchiveReader] = None
    temp_file: Optional[BinaryIO] = None
    temp_path: Optional[Path] = None
    writer: Optional[ArchiveWriter] = None
    published: bool = False

    # 构建结果
    transcode_stats: Optional[TranscodeStats] = None
    appended: List[Header] = field(default_factory=list)

    # 统计信息
    build_stats: Dict[str, Any] = None  # type: ignore

    def __post_init__(self):
        if self.build_stats is None:
            self.build_stats = {
                'start_time': 0,
                'end_time': 0,
                'source_size': 0,
                'entries_copied': 0,
                'entries_skipped': 0,
                'entries_appended': 0,
                'bytes_copied': 0,
                'output_size': 0,
            }

    @property
    def output_path(self) -> Path:
        return self.config.output_path

    def transition(self, state: PipelineState) -> None:
        """推进管道状态"""
        debug(f"状态: {self.state.value} -> {state.value}", stage=LogStage.INIT)
        self.state = state

    def report(self, stage: str, current: int, message: str = "") -> None:
        """报告进度"""
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


class BuildError(Exception):
    """构建错误

    Attributes:
        step: 失败的构建步骤名
    """

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step
