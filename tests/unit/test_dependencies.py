"""
依赖检查器单元测试
"""

import json

from nwpack.build.dependencies import find_excludable_dependencies


def _package(directory, name, dependencies=None, optional=None):
    directory.mkdir(parents=True, exist_ok=True)
    data = {"name": name, "version": "1.0.0"}
    if dependencies:
        data["dependencies"] = {dep: "*" for dep in dependencies}
    if optional:
        data["optionalDependencies"] = {dep: "*" for dep in optional}
    (directory / "package.json").write_text(json.dumps(data), encoding="utf-8")


class TestFindExcludableDependencies:
    """可排除依赖测试"""

    def test_no_node_modules(self, tmp_path):
        """测试没有 node_modules 时返回空列表"""
        assert find_excludable_dependencies(tmp_path, {"dependencies": {"a": "*"}}) == []

    def test_dev_dependencies_excluded(self, tmp_path):
        """测试只有运行时依赖及其传递依赖被保留"""
        modules = tmp_path / "node_modules"
        _package(modules / "runtime-dep", "runtime-dep", dependencies=["transitive"])
        _package(modules / "transitive", "transitive")
        _package(modules / "optional-dep", "optional-dep")
        _package(modules / "dev-tool", "dev-tool", dependencies=["dev-helper"])
        _package(modules / "dev-helper", "dev-helper")
        (modules / ".bin").mkdir()

        manifest = {
            "dependencies": {"runtime-dep": "^1.0.0"},
            "optionalDependencies": {"optional-dep": "*"},
            "devDependencies": {"dev-tool": "*"},
        }

        assert find_excludable_dependencies(tmp_path, manifest) == ["dev-helper", "dev-tool"]

    def test_scoped_packages(self, tmp_path):
        """测试作用域包按 @scope/name 处理"""
        modules = tmp_path / "node_modules"
        _package(modules / "@acme" / "core", "@acme/core")
        _package(modules / "@acme" / "cli", "@acme/cli")

        result = find_excludable_dependencies(tmp_path, {"dependencies": {"@acme/core": "*"}})

        assert result == ["@acme/cli"]

    def test_nested_dependency_does_not_mark_top_level(self, tmp_path):
        """测试嵌套安装的依赖不会使同名顶层包被保留"""
        modules = tmp_path / "node_modules"
        _package(modules / "app-dep", "app-dep", dependencies=["shared"])
        _package(modules / "app-dep" / "node_modules" / "shared", "shared")
        _package(modules / "shared", "shared")

        result = find_excludable_dependencies(tmp_path, {"dependencies": {"app-dep": "*"}})

        assert result == ["shared"]

    def test_missing_dependency_ignored(self, tmp_path):
        """测试未安装的依赖被忽略"""
        modules = tmp_path / "node_modules"
        _package(modules / "present", "present")

        result = find_excludable_dependencies(tmp_path, {"dependencies": {"absent": "*", "present": "*"}})

        assert result == []

    def test_dependency_cycle(self, tmp_path):
        """测试依赖循环可以终止"""
        modules = tmp_path / "node_modules"
        _package(modules / "a", "a", dependencies=["b"])
        _package(modules / "b", "b", dependencies=["a"])

        assert find_excludable_dependencies(tmp_path, {"dependencies": {"a": "*"}}) == []
