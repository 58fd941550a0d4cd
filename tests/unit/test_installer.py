"""
安装器目标构建器单元测试
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from nwpack.build.build_context import Arch, InstallerCompilerError, Platform, Task, UnknownTargetError
from nwpack.build.installer_target import InstallerTargetBuilder
from nwpack.build.versions import VersionRegistry
from nwpack.config.schema import BuildConfig


class RecordingCompiler:
    """记录编译调用并保存脚本内容"""

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def __call__(self, source_dir, script, quiet=True):
        self.calls.append({
            "source_dir": Path(source_dir),
            "script": Path(script),
            "text": Path(script).read_text(encoding="utf-8"),
        })
        if self.fail:
            raise InstallerCompilerError(1)


def _config(diff_updaters=False, version="1.2.0"):
    return BuildConfig.from_manifest({
        "name": "demo",
        "version": version,
        "build": {
            "win": {"productName": "Demo", "companyName": "Acme", "productVersion": f"{version}-rc.1"},
            "nsis": {"diffUpdaters": diff_updaters},
        },
    })


def _target(project, version="1.2.0", arch="x64", content="exe"):
    target = project / "dist" / f"demo-{version}-win-{arch}"
    target.mkdir(parents=True, exist_ok=True)
    (target / "Demo.exe").write_text(content, encoding="utf-8")
    return target


WIN_X64 = Task(Platform.WINDOWS, Arch.X64)


class TestInstallerTargetBuilder:
    """InstallerTargetBuilder 测试"""

    def test_skip_non_windows(self, tmp_path):
        """测试非 Windows 平台跳过"""
        compiler = RecordingCompiler()
        builder = InstallerTargetBuilder(tmp_path, _config(), compiler=compiler)

        assert builder.build("nsis", Task(Platform.MAC, Arch.X64), tmp_path / "x") == []
        assert compiler.calls == []
        assert not (tmp_path / "dist" / "versions.nsis.json").exists()

    def test_unknown_kind(self, tmp_path):
        """测试非安装器类型"""
        builder = InstallerTargetBuilder(tmp_path, _config(), compiler=RecordingCompiler())
        with pytest.raises(UnknownTargetError):
            builder.build("msi", WIN_X64, tmp_path)

    def test_full_installer(self, tmp_path):
        """测试完整安装器：在目标目录中编译并登记版本"""
        target = _target(tmp_path)
        compiler = RecordingCompiler()
        builder = InstallerTargetBuilder(tmp_path, _config(), compiler=compiler)

        artifacts = builder.build("nsis", WIN_X64, target)

        setup = tmp_path / "dist" / "demo-1.2.0-win-x64-Setup.exe"
        assert artifacts == [setup]

        call = compiler.calls[0]
        assert call["source_dir"] == target
        assert 'VIProductVersion "1.2.0.0"' in call["text"]
        assert f'OutFile "{setup}"' in call["text"]
        assert not call["script"].exists()

        registry = VersionRegistry.for_output(tmp_path / "dist")
        entry = registry.get_version("1.2.0")
        assert entry.source == "demo-1.2.0-win-x64"
        assert entry.installers == {"x64": "demo-1.2.0-win-x64-Setup.exe"}

    def test_script_removed_on_failure(self, tmp_path):
        """测试编译失败时同样删除临时脚本，且不改动登记表"""
        target = _target(tmp_path)
        compiler = RecordingCompiler(fail=True)
        builder = InstallerTargetBuilder(tmp_path, _config(), compiler=compiler)

        with pytest.raises(InstallerCompilerError):
            builder.build("nsis", WIN_X64, target)

        assert not compiler.calls[0]["script"].exists()
        assert not (tmp_path / "dist" / "versions.nsis.json").exists()

    def test_self_extracting_installer(self, tmp_path):
        """测试自解压安装器先生成 7z 快照"""
        target = _target(tmp_path)
        archive = tmp_path / "dist" / "demo-1.2.0-win-x64.7z"
        archive_builder = MagicMock()
        archive_builder.build.return_value = archive
        compiler = RecordingCompiler()

        builder = InstallerTargetBuilder(tmp_path, _config(), archive_builder=archive_builder, compiler=compiler)
        builder.build("nsis7z", WIN_X64, target)

        archive_builder.build.assert_called_once_with("7z", target)
        assert str(archive) in compiler.calls[0]["text"]
        assert "Nsis7z::ExtractWithDetails" in compiler.calls[0]["text"]

    def test_diff_updaters_for_older_versions(self, tmp_path):
        """测试为每个更早的版本生成差量更新"""
        old_a = _target(tmp_path, "1.0.0", content="v1.0")
        old_b = _target(tmp_path, "1.1.0", content="v1.1")
        newer = _target(tmp_path, "2.0.0", content="v2")
        registry = VersionRegistry.for_output(tmp_path / "dist")
        for version, source in [("1.0.0", old_a), ("1.1.0", old_b), ("2.0.0", newer)]:
            registry.add_version(version, source)
        registry.save()

        target = _target(tmp_path, "1.2.0", content="v1.2")
        compiler = RecordingCompiler()
        builder = InstallerTargetBuilder(tmp_path, _config(diff_updaters=True), compiler=compiler)

        artifacts = builder.build("nsis", WIN_X64, target)

        dist = tmp_path / "dist"
        assert artifacts == [
            dist / "demo-1.2.0-win-x64-Setup.exe",
            dist / "demo-1.2.0-from-1.0.0-win-x64-Update.exe",
            dist / "demo-1.2.0-from-1.1.0-win-x64-Update.exe",
        ]
        # 差量脚本在新版本目录中编译
        assert [c["source_dir"] for c in compiler.calls] == [target, target, target]
        assert 'File "Demo.exe"' in compiler.calls[1]["text"]

        saved = VersionRegistry.for_output(dist).get_version("1.2.0")
        assert set(saved.updaters) == {"1.0.0", "1.1.0"}
        assert saved.updaters["1.0.0"]["x64"] == "demo-1.2.0-from-1.0.0-win-x64-Update.exe"

    def test_no_updaters_when_disabled(self, tmp_path):
        """测试关闭差量更新时即使存在更早版本也不生成、不登记"""
        registry = VersionRegistry.for_output(tmp_path / "dist")
        for version in ["1.0.0", "1.1.0"]:
            registry.add_version(version, _target(tmp_path, version, content=f"v{version}"))
        registry.save()

        target = _target(tmp_path, "1.2.0", content="v1.2")
        compiler = RecordingCompiler()
        builder = InstallerTargetBuilder(tmp_path, _config(diff_updaters=False), compiler=compiler)

        artifacts = builder.build("nsis", WIN_X64, target)

        dist = tmp_path / "dist"
        assert artifacts == [dist / "demo-1.2.0-win-x64-Setup.exe"]
        assert len(compiler.calls) == 1
        assert not list(dist.glob("*-Update.exe"))

        saved = VersionRegistry.for_output(dist).get_version("1.2.0")
        assert saved.installers == {"x64": "demo-1.2.0-win-x64-Setup.exe"}
        assert not saved.updaters
