"""
编解码库集成步骤模块

下载与运行时版本匹配的完整编解码库，覆盖运行时自带的精简版本。
"""

import shutil
from typing import Callable, Optional

from ...download.downloader import CodecDownloader
from ...utils.logging import info, LogStage
from ..build_context import TargetContext
from ..runtime import find_codec_library
from .build_step import BuildStep


class CodecIntegrationStep(BuildStep):
    """编解码库集成步骤"""

    def __init__(self, downloader_factory: Optional[Callable] = None):
        super().__init__("codec", "集成编解码库")
        self.downloader_factory = downloader_factory or CodecDownloader

    def execute(self, context: TargetContext) -> None:
        if not context.config.ffmpeg_integration:
            return

        downloader = self.downloader_factory(
            platform=context.platform,
            arch=context.arch,
            version=context.runtime_version,
            cache_dir=context.options.cache_dir,
            show_progress=not context.options.quiet,
        )

        if not context.options.quiet:
            info(f"获取编解码库: {context.task} v{downloader.version}", stage=LogStage.DOWNLOAD)

        codec_dir = downloader.fetch_and_extract()

        src = find_codec_library(context.platform, codec_dir)
        dest = find_codec_library(context.platform, context.target_dir)
        shutil.copyfile(src, dest)
