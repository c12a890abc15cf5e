"""源码拉取器

按 source_url 形态分派到具体来源，并保证拉取失败时临时目录已释放。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

from recipekit.core.exceptions import FetchError
from recipekit.core.models import PackageDescriptor
from recipekit.services.fetch.sources import ArchiveSource, GitSource, LocalSource
from recipekit.services.fetch.workspace import SourceTree, acquire_tree
from recipekit.utils.net import is_archive_url, is_git_url

logger = logging.getLogger(__name__)


class Source(Protocol):
    def fetch(
        self, descriptor: PackageDescriptor, dest: Path, timeout: float | None,
    ) -> tuple[Path, str]:
        ...


class SourceFetcher:
    """源码拉取设施（驱动方可替换各来源适配器）"""

    def __init__(
        self,
        work_dir: str = "",
        git_source: Source | None = None,
        archive_source: Source | None = None,
        local_source: Source | None = None,
    ) -> None:
        self.work_dir = work_dir
        self._git = git_source or GitSource()
        self._archive = archive_source or ArchiveSource()
        self._local = local_source or LocalSource()

    def select(self, url: str) -> tuple[str, Source]:
        """根据地址选择来源，返回 (类型, 适配器)"""
        scheme = urlparse(url).scheme
        if is_archive_url(url):
            return "archive", self._archive
        if scheme == "file" or (not scheme and Path(url).expanduser().is_dir()):
            return "local", self._local
        if is_git_url(url):
            return "git", self._git
        raise FetchError(f"无法识别的源码地址: {url}")

    def fetch(
        self, descriptor: PackageDescriptor, *, timeout: float | None = None,
    ) -> SourceTree:
        """拉取源码到新的临时源码树；任何失败都会先释放临时目录再抛出"""
        kind, source = self.select(descriptor.source_url)
        tree = acquire_tree(descriptor.name, self.work_dir)
        tree.source_url = descriptor.source_url
        try:
            path, revision = source.fetch(descriptor, tree.root / "src", timeout)
        except BaseException:
            tree.release()
            raise
        tree.path = path
        tree.revision = revision
        logger.info(
            "源码就绪 (%s): %s -> %s%s", kind, descriptor.label, path,
            f" @{revision}" if revision else "",
        )
        return tree
