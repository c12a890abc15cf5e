"""源码拉取模块

- workspace.py: 临时源码树（作用域资源）
- sources.py: 来源适配器 Git / 归档 / 本地目录
- fetcher.py: 按地址分派的拉取器
"""

from recipekit.services.fetch.fetcher import SourceFetcher
from recipekit.services.fetch.sources import ArchiveSource, GitSource, LocalSource
from recipekit.services.fetch.workspace import SourceTree, acquire_tree

__all__ = [
    "SourceFetcher",
    "SourceTree",
    "acquire_tree",
    "GitSource",
    "ArchiveSource",
    "LocalSource",
]
