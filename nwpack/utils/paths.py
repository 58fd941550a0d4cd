"""
路径工具

提供临时文件、目录清理、文件复制等路径处理相关的工具函数。
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def empty_directory(path: Union[str, Path]) -> Path:
    """清空目录内容；目录不存在时创建"""
    dir_path = Path(path)
    if dir_path.exists():
        for child in dir_path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
    else:
        dir_path.mkdir(parents=True)
    return dir_path


def remove_path(path: Union[str, Path]) -> None:
    """删除文件或目录，不存在时忽略"""
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()


def tmp_name(prefix: str = "nwpack_", suffix: str = "") -> Path:
    """生成一个尚不存在的临时文件路径

    只保留名字，文件本身由调用者创建（外部工具要求目标文件不存在）。
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    os.close(fd)
    os.unlink(name)
    return Path(name)


def copy_file(src: Union[str, Path], dest: Union[str, Path]) -> Path:
    """复制单个文件，自动创建中间目录"""
    dest_path = Path(dest)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest_path)
    return dest_path


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
