"""
测试公共夹具
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from nwpack.build.build_context import Arch, Platform, TargetContext, Task
from nwpack.build.runtime import app_root_for
from nwpack.config.schema import BuildConfig, BuilderOptions


def write_manifest(project_dir: Path, manifest: Dict[str, Any], name: str = "package.json") -> Path:
    path = project_dir / name
    path.write_text(json.dumps(manifest), encoding="utf-8")
    return path


@pytest.fixture
def manifest() -> Dict[str, Any]:
    return {
        "name": "demo",
        "version": "1.2.0",
        "description": "Demo app",
        "main": "index.html",
        "build": {
            "nwVersion": "0.80.0",
            "targets": ["zip"],
            "win": {"productName": "Demo", "companyName": "Acme"},
        },
    }


@pytest.fixture
def project_dir(tmp_path, manifest) -> Path:
    """包含清单与少量源文件的项目目录"""
    project = tmp_path / "project"
    project.mkdir()
    write_manifest(project, manifest)
    (project / "index.html").write_text("<html></html>", encoding="utf-8")
    (project / "js").mkdir()
    (project / "js" / "app.js").write_text("console.log(1)", encoding="utf-8")
    return project


def make_runtime(root: Path, platform: Platform) -> Path:
    """伪造解压后的运行时包"""
    runtime = root / f"nwjs-v0.80.0-{platform.value}"
    if platform is Platform.WINDOWS:
        runtime.mkdir(parents=True)
        (runtime / "nw.exe").write_bytes(b"MZ-stub")
        (runtime / "ffmpeg.dll").write_bytes(b"stub-codec")
    elif platform is Platform.LINUX:
        runtime.mkdir(parents=True)
        (runtime / "nw").write_bytes(b"ELF-stub")
        (runtime / "lib").mkdir()
        (runtime / "lib" / "libffmpeg.so").write_bytes(b"stub-codec")
    else:
        contents = runtime / "nwjs.app" / "Contents"
        (contents / "MacOS").mkdir(parents=True)
        (contents / "MacOS" / "nwjs").write_bytes(b"macho-stub")
        (contents / "Resources" / "en.lproj").mkdir(parents=True)
        (contents / "Info.plist").write_bytes(
            b'<?xml version="1.0" encoding="UTF-8"?>\n'
            b'<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
            b'<plist version="1.0"><dict>'
            b'<key>CFBundleIdentifier</key><string>io.nwjs.nwjs</string>'
            b'<key>CFBundleName</key><string>nwjs</string>'
            b'</dict></plist>\n'
        )
        (contents / "Resources" / "en.lproj" / "InfoPlist.strings").write_bytes(
            'CFBundleName = "nwjs";\nCFBundleDisplayName = "nwjs";\n'.encode("utf-16-le")
        )
    return runtime


@pytest.fixture
def make_context(tmp_path, project_dir, manifest):
    """构造目标构建上下文"""

    def factory(
        platform: Platform = Platform.WINDOWS,
        arch: Arch = Arch.X64,
        packed: bool = False,
        manifest_data: Optional[Dict[str, Any]] = None,
        options: Optional[BuilderOptions] = None,
    ) -> TargetContext:
        data = dict(manifest_data or manifest)
        data["build"] = {**data.get("build", {}), "packed": packed}
        config = BuildConfig.from_manifest(data)
        target_dir = tmp_path / "out" / f"demo-{platform.value}-{arch.value}"
        target_dir.mkdir(parents=True, exist_ok=True)
        return TargetContext(
            task=Task(platform, arch),
            project_dir=project_dir,
            manifest=data,
            manifest_name="package.json",
            config=config,
            options=options or BuilderOptions(),
            runtime_dir=tmp_path / "runtime",
            target_dir=target_dir,
            app_root=app_root_for(platform, target_dir),
            runtime_version="0.80.0",
        )

    return factory


@pytest.fixture
def runtime_factory():
    """伪造运行时包的工厂"""
    return make_runtime
