"""recipekit 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import click

from recipekit import __version__
from recipekit.core.config import init_config
from recipekit.services.container import get_container, reset_container
from recipekit.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _parse_ref(text: str) -> tuple[str, str | None]:
    """name 或 name@version"""
    name, sep, version = text.partition("@")
    return name, (version if sep else None)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path",
    default=lambda: os.getenv("RECIPEKIT_CONFIG", "configs/default.yml"),
    help="配置文件路径",
)
def main(config_path: str) -> None:
    """recipekit - 声明式包构建/安装工具"""
    setup_logging(
        level=os.getenv("RECIPEKIT_LOG_LEVEL", "INFO"),
        json_output=os.getenv("RECIPEKIT_LOG_JSON", "") == "1",
    )
    if Path(config_path).exists():
        init_config(config_path)
    reset_container()


# 注册各领域子命令
from recipekit.cli.cmd_catalog import register as _reg_catalog  # noqa: E402
from recipekit.cli.cmd_install import register as _reg_install  # noqa: E402
from recipekit.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_catalog(main)
_reg_install(main)
_reg_misc(main)
