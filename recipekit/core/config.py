"""集中配置管理

支持从 YAML 文件加载 + 编程式覆盖，未知键保留在 extra 中。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from recipekit.core.exceptions import ConfigError
from recipekit.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

INSTALL_POLICIES = ("none", "rollback")


def _default_layout() -> dict[str, str]:
    return {
        "binary": "bin",
        "shared_resources": "share/{name}",
    }


@dataclass
class Config:
    """全局配置"""

    # 目录
    catalog_file: str = "data/catalog.yml"
    prefix: str = "data/prefix"
    work_dir: str = ""            # 临时源码树的父目录，空则使用系统临时目录

    # 超时（秒），0 表示不限
    fetch_timeout: int = 600
    build_timeout: int = 3600

    # 安装
    keep_source: bool = False     # 保留临时源码树用于调试
    install_policy: str = "none"  # none | rollback
    max_workers: int = 4

    # 目标类别 -> 前缀下子目录模板，{name} / {version} 会被替换
    layout: dict[str, str] = field(default_factory=_default_layout)

    # 构建环境标签 -> 附加环境变量
    build_environments: dict[str, dict[str, str]] = field(default_factory=dict)

    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.install_policy not in INSTALL_POLICIES:
            raise ConfigError(
                f"install_policy 无效: {self.install_policy}，"
                f"可选: {', '.join(INSTALL_POLICIES)}"
            )

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        if "layout" in matched:
            matched["layout"] = {**_default_layout(), **(matched["layout"] or {})}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    @staticmethod
    def timeout_or_none(seconds: int | float | None) -> float | None:
        """0 / None 视为不限时"""
        if not seconds:
            return None
        return float(seconds)

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
