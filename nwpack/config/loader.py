"""
配置加载器

负责读取项目清单（JSON）与构建器选项文件（YAML），并进行验证。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import BuildConfig, BuilderOptions


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val:
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML(typ="safe")

    def load_manifest(self, manifest_path: Union[str, Path]) -> Dict[str, Any]:
        """读取项目清单

        Args:
            manifest_path: package.json 或 manifest.json 路径

        Returns:
            Dict: 原始清单数据

        Raises:
            ConfigError: 文件不存在或 JSON 解析失败
        """
        manifest_path = Path(manifest_path)

        if not manifest_path.is_file():
            raise ConfigError(f"项目清单不存在: {manifest_path}")

        try:
            with open(manifest_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"清单 JSON 解析错误: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("清单根级别必须是对象")

        return data

    def build_config(self, manifest: Dict[str, Any]) -> BuildConfig:
        """从清单推导构建配置

        Raises:
            ConfigValidationError: 构建配置验证失败
        """
        try:
            return BuildConfig.from_manifest(manifest)
        except ValidationError as e:
            raise ConfigValidationError("构建配置验证失败", list(e.errors())) from e

    def load_project(self, project_dir: Union[str, Path], manifest_name: str = "package.json") -> Tuple[Dict[str, Any], BuildConfig]:
        """读取项目清单并构造构建配置"""
        manifest = self.load_manifest(Path(project_dir) / manifest_name)
        return manifest, self.build_config(manifest)

    def load_options(self, options_path: Union[str, Path], overrides: Optional[Dict[str, Any]] = None) -> BuilderOptions:
        """从 YAML 选项文件加载构建器选项

        Args:
            options_path: 选项文件路径
            overrides: 覆盖文件内容的选项（通常来自命令行）

        Raises:
            ConfigError: 文件不存在或 YAML 解析错误
            ConfigValidationError: 选项验证失败
        """
        options_path = Path(options_path)

        if not options_path.is_file():
            raise ConfigError(f"选项文件不存在: {options_path}")

        if options_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"选项文件必须是 .yaml 或 .yml 格式: {options_path}")

        try:
            with open(options_path, 'r', encoding='utf-8') as f:
                raw_data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e

        if raw_data is None:
            raw_data = {}

        if not isinstance(raw_data, dict):
            raise ConfigError("选项文件根级别必须是对象/字典格式")

        data = dict(raw_data)
        data.update(overrides or {})
        return self.make_options(data)

    def make_options(self, data: Dict[str, Any]) -> BuilderOptions:
        """验证并构造构建器选项"""
        try:
            return BuilderOptions.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError("构建器选项验证失败", list(e.errors())) from e


# 全局加载器实例
config_loader = ConfigLoader()


def load_project(project_dir: Union[str, Path], manifest_name: str = "package.json") -> Tuple[Dict[str, Any], BuildConfig]:
    """便捷函数：读取项目清单与构建配置"""
    return config_loader.load_project(project_dir, manifest_name)


def load_build_config(manifest: Dict[str, Any]) -> BuildConfig:
    """便捷函数：从清单构造构建配置"""
    return config_loader.build_config(manifest)


def load_options(options_path: Union[str, Path], overrides: Optional[Dict[str, Any]] = None) -> BuilderOptions:
    """便捷函数：加载构建器选项文件"""
    return config_loader.load_options(options_path, overrides)
