"""
平台收尾处理单元测试

测试 Windows 版本归一化与资源修改、macOS plist / strings 改写、重命名规则。
"""

import plistlib
import sys
from unittest.mock import MagicMock, patch

import pytest

from nwpack.build.build_context import Arch, Platform, ResourceEditorError, ToolNotFoundError, UnknownPlatformError
from nwpack.build.platforms import (
    LinuxFinisher,
    MacFinisher,
    ResourceEditor,
    WindowsFinisher,
    detect_encoding,
    get_finisher,
    normalize_windows_version,
    read_plist,
    rewrite_strings,
    write_plist,
)
from nwpack.build.installer_target import InstallerTargetBuilder
from nwpack.build.platforms.windows import find_rcedit
from nwpack.build.runtime import MAC_INFO_PLIST
from nwpack.config.schema import MacConfig
from nwpack.nsis import NsisComposer



class TestPlatformParsing:
    """平台别名测试"""

    @pytest.mark.parametrize("token,expected", [
        ("win32", Platform.WINDOWS),
        ("win", Platform.WINDOWS),
        ("darwin", Platform.MAC),
        ("osx", Platform.MAC),
        ("mac", Platform.MAC),
        ("linux", Platform.LINUX),
        (Platform.LINUX, Platform.LINUX),
    ])
    def test_aliases(self, token, expected):
        """测试已知别名"""
        assert Platform.parse(token) is expected

    def test_unknown_platform(self):
        """测试未知平台"""
        with pytest.raises(UnknownPlatformError):
            Platform.parse("freebsd")
        with pytest.raises(UnknownPlatformError):
            get_finisher("android")

    def test_download_names(self):
        """测试发布包中的架构名"""
        assert Arch.X86.download_name == "ia32"
        assert Arch.X64.download_name == "x64"

    def test_get_finisher(self):
        """测试按平台选择收尾处理器"""
        assert isinstance(get_finisher("darwin"), MacFinisher)
        assert isinstance(get_finisher("linux"), LinuxFinisher)
        with patch("nwpack.build.platforms.windows.find_rcedit", return_value=["rcedit"]):
            assert isinstance(get_finisher("win32"), WindowsFinisher)


class TestWindowsVersion:
    """Windows 版本号归一化测试"""

    @pytest.mark.parametrize("version,expected", [
        ("1.2.3", "1.2.3.0"),
        ("1.2.3-beta.1", "1.2.3.0"),
        ("1.2.3+build.7", "1.2.3.0"),
        ("1", "1.0.0.0"),
        ("1.2.3.4.5", "1.2.3.4"),
        ("v2.0", "2.0.0.0"),
        ("01.02.03", "1.2.3.0"),
    ])
    def test_normalize(self, version, expected):
        """测试归一化为四段数字"""
        assert normalize_windows_version(version) == expected

    def test_invalid_version(self):
        """测试不以数字开头的版本号"""
        with pytest.raises(ValueError):
            normalize_windows_version("beta")


class TestResourceEditor:
    """rcedit 包装测试"""

    def test_edit_arguments(self, tmp_path):
        """测试 rcedit 参数"""
        editor = ResourceEditor(command=["rcedit"])
        with patch("nwpack.build.platforms.windows.subprocess.run") as run:
            run.return_value = MagicMock(returncode=0)
            editor.edit(
                tmp_path / "nw.exe",
                product_version="1.2.0.0",
                file_version="1.2.0.0",
                version_strings={"ProductName": "Demo"},
                icon=tmp_path / "app.ico",
            )

        cmd = run.call_args[0][0]
        assert cmd[:2] == ["rcedit", str(tmp_path / "nw.exe")]
        assert cmd[cmd.index("--set-product-version") + 1] == "1.2.0.0"
        assert cmd[cmd.index("--set-version-string") + 1:cmd.index("--set-version-string") + 3] == ["ProductName", "Demo"]
        assert cmd[-2:] == ["--set-icon", str(tmp_path / "app.ico")]

    def test_edit_failure(self, tmp_path):
        """测试 rcedit 失败"""
        editor = ResourceEditor(command=["rcedit"])
        with patch("nwpack.build.platforms.windows.subprocess.run") as run:
            run.return_value = MagicMock(returncode=1)
            with pytest.raises(ResourceEditorError):
                editor.edit(tmp_path / "nw.exe", "1.0.0.0", "1.0.0.0", {})

    def test_find_rcedit_env(self, monkeypatch):
        """测试环境变量指定 rcedit"""
        monkeypatch.setenv("NWPACK_RCEDIT", "/opt/rcedit")
        assert find_rcedit() == ["/opt/rcedit"]

    @pytest.mark.skipif(sys.platform == "win32", reason="非 Windows 主机行为")
    def test_find_rcedit_via_wine(self, monkeypatch):
        """测试非 Windows 主机通过 wine 运行 rcedit.exe"""
        monkeypatch.setenv("NWPACK_RCEDIT", "/opt/rcedit-x64.exe")
        with patch("nwpack.build.platforms.windows.shutil.which", return_value="/usr/bin/wine"):
            assert find_rcedit() == ["/usr/bin/wine", "/opt/rcedit-x64.exe"]
        with patch("nwpack.build.platforms.windows.shutil.which", return_value=None):
            with pytest.raises(ToolNotFoundError):
                find_rcedit()


class TestWindowsFinisher:
    """Windows 收尾处理测试"""

    def test_prepare_and_finalize(self, make_context, tmp_path):
        """测试修补使用原始桩名，重命名使用产品名"""
        context = make_context(Platform.WINDOWS)
        (context.target_dir / "nw.exe").write_bytes(b"MZ")

        editor = MagicMock()
        finisher = WindowsFinisher(editor=editor)
        finisher.prepare(context)

        kwargs = editor.edit.call_args[1]
        assert editor.edit.call_args[0][0] == context.target_dir / "nw.exe"
        assert kwargs["product_version"] == "1.2.0.0"
        assert kwargs["version_strings"]["CompanyName"] == "Acme"
        assert kwargs["icon"] is None

        renamed = finisher.finalize(context)
        assert renamed == context.target_dir / "Demo.exe"
        assert renamed.exists()
        assert not (context.target_dir / "nw.exe").exists()

    def test_product_name_override_in_version_strings(self, make_context, manifest, tmp_path):
        """测试 versionStrings 覆盖 ProductName 时，可执行文件名、版本资源与安装器快捷方式保持一致"""
        data = {**manifest, "build": {**manifest["build"], "win": {
            "productName": "Demo",
            "versionStrings": {"ProductName": "Demo Pro"},
        }}}
        context = make_context(Platform.WINDOWS, manifest_data=data)
        (context.target_dir / "nw.exe").write_bytes(b"MZ")

        editor = MagicMock()
        finisher = WindowsFinisher(editor=editor)
        finisher.prepare(context)
        renamed = finisher.finalize(context)

        installer_options = InstallerTargetBuilder(tmp_path, context.config).make_options(tmp_path / "setup.exe")

        assert editor.edit.call_args[1]["version_strings"]["ProductName"] == "Demo Pro"
        assert renamed == context.target_dir / "Demo Pro.exe"
        assert installer_options.app_name == "Demo Pro"
        assert f'"$INSTDIR\\{installer_options.app_name}.exe"' in NsisComposer(installer_options).make()


class TestLinuxFinisher:
    """Linux 收尾处理测试"""

    def test_finalize(self, make_context):
        """测试 nw 重命名为应用包名"""
        context = make_context(Platform.LINUX)
        (context.target_dir / "nw").write_bytes(b"ELF")

        finisher = LinuxFinisher()
        finisher.prepare(context)
        assert finisher.finalize(context) == context.target_dir / "demo"


class TestMacPlist:
    """macOS plist 与 strings 测试"""

    def test_detect_encoding(self):
        """测试通过 CF 字节探测编码"""
        assert detect_encoding('CFBundleName = "x";'.encode("utf-16-le")) == "utf-16-le"
        assert detect_encoding(b'CFBundleName = "x";') == "utf-8"

    def test_rewrite_strings(self):
        """测试只替换已知键"""
        mac = MacConfig(name="Demo", display_name="Demo App", version="1.2.0", description="Uses contacts", copyright="(c) Acme")
        text = (
            'CFBundleName = "nwjs";\n'
            'CFBundleDisplayName = "nwjs";\n'
            'NSHumanReadableCopyright = "Copyright nwjs";\n'
            'NSCameraUsageDescription = "camera";\n'
        )

        result = rewrite_strings(text, mac)

        assert 'CFBundleName = "Demo";' in result
        assert 'CFBundleDisplayName = "Demo App";' in result
        assert 'NSHumanReadableCopyright = "(c) Acme";' in result
        assert 'NSCameraUsageDescription = "camera";' in result

    def test_read_utf16_plist(self, tmp_path):
        """测试 UTF-16 文本 plist 解码"""
        path = tmp_path / "Info.plist"
        xml = plistlib.dumps({"CFBundleName": "nwjs"}).decode("utf-8").replace('encoding="UTF-8"', 'encoding="UTF-16"')
        path.write_bytes(b"\xff\xfe" + xml.encode("utf-16-le"))

        data, fmt = read_plist(path)
        assert data == {"CFBundleName": "nwjs"}
        assert fmt == plistlib.FMT_XML

    def test_binary_plist_stays_binary(self, tmp_path):
        """测试二进制 plist 写回后仍为二进制"""
        path = tmp_path / "Info.plist"
        path.write_bytes(plistlib.dumps({"CFBundleName": "nwjs"}, fmt=plistlib.FMT_BINARY))

        data, fmt = read_plist(path)
        data["CFBundleName"] = "Demo"
        write_plist(path, data, fmt)

        assert path.read_bytes().startswith(b"bplist")
        assert read_plist(path)[0]["CFBundleName"] == "Demo"


class TestMacFinisher:
    """macOS 收尾处理测试"""

    def test_prepare_and_finalize(self, make_context, runtime_factory, tmp_path):
        """测试修补 Info.plist、strings 并重命名应用包"""
        context = make_context(Platform.MAC)
        runtime = runtime_factory(tmp_path / "rt", Platform.MAC)
        (runtime / "nwjs.app").rename(context.target_dir / "nwjs.app")

        finisher = MacFinisher()
        finisher.prepare(context)

        plist, _ = read_plist(context.target_dir / MAC_INFO_PLIST)
        assert plist["CFBundleIdentifier"] == "io.github.nwjs.demo"
        assert plist["CFBundleName"] == "demo"
        assert plist["CFBundleShortVersionString"] == "1.2.0"

        strings_path = next(context.target_dir.rglob("InfoPlist.strings"))
        raw = strings_path.read_bytes()
        assert detect_encoding(raw) == "utf-16-le"
        assert 'CFBundleDisplayName = "demo";' in raw.decode("utf-16-le")

        renamed = finisher.finalize(context)
        assert renamed == context.target_dir / "demo.app"
        assert (renamed / "Contents" / "Info.plist").exists()
