"""
下载器单元测试

替换 requests 调用，测试 URL 规则、版本解析与缓存复用。
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from nwpack.build.build_context import Arch, Platform
from nwpack.download import BaseDownloader, CodecDownloader, DownloadError, RuntimeDownloader, resolve_version


def _response(payload=None, chunks=()):
    response = MagicMock()
    response.json.return_value = payload
    response.headers = {"content-length": str(sum(len(c) for c in chunks))}
    response.iter_content.return_value = list(chunks)
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


class TestResolveVersion:
    """运行时版本解析测试"""

    def test_concrete_version(self):
        """测试具体版本号只去掉 v 前缀"""
        with patch("nwpack.download.downloader.requests.get") as get:
            assert resolve_version("v0.80.0") == "0.80.0"
            get.assert_not_called()

    def test_symbolic_version(self):
        """测试从镜像的 versions.json 解析 lts"""
        with patch("nwpack.download.downloader.requests.get") as get:
            get.return_value = _response({"latest": "v0.85.0", "stable": "v0.84.0", "lts": "v0.80.1"})
            assert resolve_version("lts", "https://mirror.example/") == "0.80.1"
        assert get.call_args[0][0] == "https://mirror.example/versions.json"

    def test_network_error(self):
        """测试网络错误包装为 DownloadError"""
        with patch("nwpack.download.downloader.requests.get", side_effect=requests.ConnectionError("boom")):
            with pytest.raises(DownloadError):
                resolve_version("latest")


class TestDownloadUrls:
    """下载地址测试"""

    @pytest.mark.parametrize("platform,arch,flavor,expected", [
        (Platform.WINDOWS, Arch.X64, "normal", "https://dl.nwjs.io/v0.80.0/nwjs-v0.80.0-win-x64.zip"),
        (Platform.WINDOWS, Arch.X86, "sdk", "https://dl.nwjs.io/v0.80.0/nwjs-sdk-v0.80.0-win-ia32.zip"),
        (Platform.MAC, Arch.X64, "normal", "https://dl.nwjs.io/v0.80.0/nwjs-v0.80.0-osx-x64.zip"),
        (Platform.LINUX, Arch.X86, "normal", "https://dl.nwjs.io/v0.80.0/nwjs-v0.80.0-linux-ia32.tar.gz"),
    ])
    def test_runtime_url(self, platform, arch, flavor, expected, tmp_path):
        """测试运行时发布包地址"""
        downloader = RuntimeDownloader(platform, arch, "0.80.0", flavor=flavor, cache_dir=tmp_path)
        assert downloader.url == expected

    def test_codec_url(self, tmp_path):
        """测试编解码库地址"""
        downloader = CodecDownloader(Platform.MAC, Arch.X64, "0.80.0", cache_dir=tmp_path)
        assert downloader.url.endswith("/0.80.0/0.80.0-osx-x64.zip")

    def test_platform_alias(self, tmp_path):
        """测试平台别名"""
        downloader = RuntimeDownloader("darwin", "x64", "0.80.0", cache_dir=tmp_path)
        assert downloader.platform is Platform.MAC

    def test_base_downloader_is_abstract(self, tmp_path):
        """测试未提供下载地址的下载器不能实例化"""
        with pytest.raises(TypeError):
            BaseDownloader(Platform.WINDOWS, Arch.X64, "0.80.0", cache_dir=tmp_path)


class TestFetch:
    """下载与缓存测试"""

    def test_fetch_writes_archive(self, tmp_path):
        """测试流式下载到缓存目录"""
        downloader = RuntimeDownloader(Platform.WINDOWS, Arch.X64, "0.80.0", cache_dir=tmp_path)
        with patch("nwpack.download.downloader.requests.get") as get:
            get.return_value = _response(chunks=[b"PK", b"data"])
            archive = downloader.fetch()

        assert archive == tmp_path / "nwjs-v0.80.0-win-x64.zip"
        assert archive.read_bytes() == b"PKdata"
        assert not list(tmp_path.glob("*.part"))

    def test_fetch_reuses_cache(self, tmp_path):
        """测试已下载的归档被复用"""
        (tmp_path / "nwjs-v0.80.0-win-x64.zip").write_bytes(b"cached")
        downloader = RuntimeDownloader(Platform.WINDOWS, Arch.X64, "0.80.0", cache_dir=tmp_path)

        with patch("nwpack.download.downloader.requests.get") as get:
            downloader.fetch()
            get.assert_not_called()

    def test_fetch_failure_removes_partial(self, tmp_path):
        """测试下载失败时删除未完成的文件"""
        downloader = RuntimeDownloader(Platform.WINDOWS, Arch.X64, "0.80.0", cache_dir=tmp_path)
        with patch("nwpack.download.downloader.requests.get", side_effect=requests.Timeout("slow")):
            with pytest.raises(DownloadError):
                downloader.fetch()
        assert list(tmp_path.iterdir()) == []

    def test_fetch_and_extract_reuses_extracted(self, tmp_path):
        """测试已解压的目录被复用"""
        (tmp_path / "nwjs-v0.80.0-win-x64.zip").write_bytes(b"cached")
        extracted = tmp_path / "nwjs-v0.80.0-win-x64"
        extracted.mkdir()
        (extracted / "nw.exe").write_bytes(b"MZ")
        archive_tool = MagicMock()

        downloader = RuntimeDownloader(Platform.WINDOWS, Arch.X64, "0.80.0", cache_dir=tmp_path, archive_tool=archive_tool)

        assert downloader.fetch_and_extract() == extracted
        archive_tool.extract_generic.assert_not_called()

    def test_fetch_and_extract(self, tmp_path):
        """测试首次解压"""
        (tmp_path / "nwjs-v0.80.0-linux-x64.tar.gz").write_bytes(b"cached")
        archive_tool = MagicMock()

        downloader = RuntimeDownloader(Platform.LINUX, Arch.X64, "0.80.0", cache_dir=tmp_path, archive_tool=archive_tool)
        dest = downloader.fetch_and_extract()

        assert dest == tmp_path / "nwjs-v0.80.0-linux-x64"
        archive_tool.extract_generic.assert_called_once_with(tmp_path / "nwjs-v0.80.0-linux-x64.tar.gz", dest, overwrite=True)
