"""测试共享 fixture - 本地源码目录 + 描述符工厂

构建命令统一使用 /bin/sh 指令（不依赖 make），源码来源使用本地目录，
整个安装流程无需网络。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from recipekit.core.models import DestinationCategory, InstallMapping, PackageDescriptor

# 模拟 slang 的构建：生成 bin/slang 和 share/slang/ 下的资源
SLANG_BUILD = (
    "mkdir -p bin share/slang/lib && "
    "printf 'slang-binary' > bin/slang && "
    "printf 'std' > share/slang/lib/std.sl && "
    "printf 'readme' > share/slang/README"
)


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    """一个空的本地源码目录（含一个占位文件）"""
    src = tmp_path / "src" / "slang"
    src.mkdir(parents=True)
    (src / "Makefile").write_text("all:\n\ttrue\n", encoding="utf-8")
    return src


@pytest.fixture()
def make_descriptor(source_dir: Path) -> Callable[..., PackageDescriptor]:
    """描述符工厂，默认即 slang 成功场景"""

    def _make(**overrides: Any) -> PackageDescriptor:
        fields: dict[str, Any] = {
            "name": "slang",
            "version": "1",
            "source_url": str(source_dir),
            "build_command": SLANG_BUILD,
            "install_mappings": (
                InstallMapping("bin/slang", DestinationCategory.BINARY),
                InstallMapping("share/slang", DestinationCategory.SHARED_RESOURCES),
            ),
        }
        fields.update(overrides)
        return PackageDescriptor(**fields)

    return _make


@pytest.fixture()
def work_dir(tmp_path: Path) -> Path:
    """临时源码树的父目录，便于断言释放"""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture()
def prefix(tmp_path: Path) -> Path:
    return tmp_path / "opt" / "pkg"
