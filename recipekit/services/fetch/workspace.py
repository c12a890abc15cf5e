"""临时源码树 - 拉取阶段获取的作用域资源

每次运行获取一个全新的临时目录，运行结束（成功或任何失败）时释放；
只有驱动方显式要求保留（调试）时才留在磁盘上。
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from recipekit.core.exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class SourceTree:
    """已拉取的源码树

    root 是获取到的临时目录；path 是构建工作目录（root 内部，
    归档只有单个顶层目录时指向该目录）。
    """

    root: Path
    path: Path
    source_url: str = ""
    revision: str = ""
    released: bool = False

    def release(self) -> None:
        """删除临时目录；重复调用无副作用"""
        if self.released:
            return
        shutil.rmtree(self.root, ignore_errors=True)
        self.released = True
        logger.debug("源码树已释放: %s", self.root)

    def __enter__(self) -> SourceTree:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def acquire_tree(name: str, work_dir: str = "") -> SourceTree:
    """创建一个空的临时源码树，目录无法创建时抛 FetchError"""
    parent = None
    try:
        if work_dir:
            Path(work_dir).mkdir(parents=True, exist_ok=True)
            parent = work_dir
        root = Path(tempfile.mkdtemp(prefix=f"recipekit-{name}-", dir=parent))
    except OSError as e:
        raise FetchError(f"无法创建临时源码树 (work_dir={work_dir or '-'}): {e}") from e
    logger.debug("源码树已获取: %s", root)
    return SourceTree(root=root, path=root)
