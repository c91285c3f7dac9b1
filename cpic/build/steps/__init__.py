"""构建步骤"""

from .build_step import BuildStep
from .open_source_step import OpenSourceStep
from .open_output_step import OpenOutputStep
from .transcode_step import TranscodeStep
from .append_step import AppendStep
from .finalize_step import FinalizeStep
from .publish_step import PublishStep

__all__ = [
    "BuildStep",
    "OpenSourceStep",
    "OpenOutputStep",
    "TranscodeStep",
    "AppendStep",
    "FinalizeStep",
    "PublishStep",
]
