"""服务容器 - 统一依赖注入

同一容器内的实例共享状态。CLI 和 Web 层均通过 get_container() 获取服务。

依赖关系图（→ 表示依赖）:
  installs    → catalog, interpreter
  interpreter → fetcher, builder, installer

用法:
    container = ServiceContainer(config=Config.from_file("my.yml"))
    result = container.installs.install("slang")
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recipekit.core.catalog import DescriptorCatalog
    from recipekit.core.config import Config
    from recipekit.services.build.executor import BuildExecutor
    from recipekit.services.fetch.fetcher import SourceFetcher
    from recipekit.services.install.installer import Installer
    from recipekit.services.install_service import InstallService
    from recipekit.services.interpreter import RecipeInterpreter

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from recipekit.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def catalog(self) -> DescriptorCatalog:
        if "catalog" not in self._instances:
            from recipekit.core.catalog import DescriptorCatalog
            self._instances["catalog"] = DescriptorCatalog(self._config.catalog_file)
        return self._instances["catalog"]  # type: ignore[return-value]

    @property
    def fetcher(self) -> SourceFetcher:
        if "fetcher" not in self._instances:
            from recipekit.services.fetch.fetcher import SourceFetcher
            self._instances["fetcher"] = SourceFetcher(work_dir=self._config.work_dir)
        return self._instances["fetcher"]  # type: ignore[return-value]

    @property
    def builder(self) -> BuildExecutor:
        if "builder" not in self._instances:
            from recipekit.services.build.executor import BuildExecutor
            self._instances["builder"] = BuildExecutor(
                environments=self._config.build_environments,
            )
        return self._instances["builder"]  # type: ignore[return-value]

    @property
    def installer(self) -> Installer:
        if "installer" not in self._instances:
            from recipekit.services.install.installer import Installer
            from recipekit.services.install.resolver import PrefixLayout
            self._instances["installer"] = Installer(
                resolver=PrefixLayout(self._config.layout),
                policy=self._config.install_policy,
            )
        return self._instances["installer"]  # type: ignore[return-value]

    @property
    def interpreter(self) -> RecipeInterpreter:
        if "interpreter" not in self._instances:
            from recipekit.services.interpreter import RecipeInterpreter
            self._instances["interpreter"] = RecipeInterpreter(
                fetcher=self.fetcher,
                builder=self.builder,
                installer=self.installer,
                fetch_timeout=self._config.timeout_or_none(self._config.fetch_timeout),
                build_timeout=self._config.timeout_or_none(self._config.build_timeout),
                keep_source=self._config.keep_source,
            )
        return self._instances["interpreter"]  # type: ignore[return-value]

    @property
    def installs(self) -> InstallService:
        if "installs" not in self._instances:
            from recipekit.services.install_service import InstallService
            self._instances["installs"] = InstallService(
                catalog=self.catalog,
                interpreter=self.interpreter,
                prefix=self._config.prefix,
                max_workers=self._config.max_workers,
            )
        return self._instances["installs"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（配置变更或测试时使用）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
