"""目录目标构建步骤"""

from .build_step import BuildStep
from .codec_step import CodecIntegrationStep
from .copy_step import CopyFilesStep
from .finalize_step import FinalizeStep
from .prepare_step import PrepareStep
from .runtime_step import RuntimeStep

__all__ = [
    "BuildStep",
    "RuntimeStep",
    "CodecIntegrationStep",
    "PrepareStep",
    "CopyFilesStep",
    "FinalizeStep",
]
