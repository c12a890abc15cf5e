"""安装器 - 按 install_mappings 顺序把构建产物复制到前缀

- 文件映射落到 <目标目录>/<文件名>
- 目录映射把目录内容合并到 <目标目录>
- 顺序即安装顺序，同一目标后写者覆盖先写者

安装策略:
  none      部分失败时已复制的映射保持原样（非事务）
  rollback  失败时删除本次新写入的文件，并还原被覆盖文件的原内容
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from recipekit.core.exceptions import InstallError
from recipekit.core.models import (
    InstalledFile,
    InstalledLayout,
    InstallMapping,
    PackageDescriptor,
)
from recipekit.services.fetch.workspace import SourceTree
from recipekit.services.install.resolver import DestinationResolver, PrefixLayout

logger = logging.getLogger(__name__)


class _Journal:
    """记录本次安装对前缀的修改，用于 rollback 策略"""

    def __init__(self) -> None:
        self._backup_dir: Path | None = None
        self._written: list[tuple[Path, Path | None]] = []
        self._seen: set[Path] = set()
        self._created_dirs: list[Path] = []

    def before_mkdir(self, directory: Path) -> None:
        missing: list[Path] = []
        current = directory
        while not current.exists() and current != current.parent:
            missing.append(current)
            current = current.parent
        self._created_dirs.extend(reversed(missing))

    def before_write(self, dest: Path) -> None:
        if dest in self._seen:
            return
        self._seen.add(dest)
        backup: Path | None = None
        if dest.is_file() or dest.is_symlink():
            if self._backup_dir is None:
                self._backup_dir = Path(tempfile.mkdtemp(prefix="recipekit-backup-"))
            backup = self._backup_dir / str(len(self._written))
            shutil.copy2(dest, backup, follow_symlinks=False)
        self._written.append((dest, backup))

    def rollback(self) -> None:
        for dest, backup in reversed(self._written):
            try:
                if dest.is_symlink() or dest.exists():
                    dest.unlink()
                if backup is not None:
                    shutil.copy2(backup, dest, follow_symlinks=False)
            except OSError as e:
                logger.error("回滚失败 %s: %s", dest, e)
        for directory in reversed(self._created_dirs):
            try:
                directory.rmdir()
            except OSError:
                # 目录非空（含其它包的文件）时保留
                continue
        logger.info("已回滚 %d 个文件", len(self._written))

    def discard(self) -> None:
        if self._backup_dir is not None:
            shutil.rmtree(self._backup_dir, ignore_errors=True)


class Installer:
    """安装设施"""

    def __init__(
        self, resolver: DestinationResolver | None = None, policy: str = "none",
    ) -> None:
        self.resolver = resolver or PrefixLayout()
        self.policy = policy

    def install(
        self, tree: SourceTree, descriptor: PackageDescriptor, prefix: str | Path,
    ) -> InstalledLayout:
        """执行全部映射；缺失产物或目标不可写时抛 InstallError"""
        prefix = Path(prefix).absolute()
        layout = InstalledLayout(prefix=str(prefix))
        journal = _Journal() if self.policy == "rollback" else None
        try:
            for mapping in descriptor.install_mappings:
                self._apply(tree, descriptor, mapping, prefix, layout, journal)
        except Exception:
            # 任何失败（含布局配置错误）都按策略回滚后原样抛出
            if journal is not None:
                journal.rollback()
            raise
        finally:
            if journal is not None:
                journal.discard()
        logger.info(
            "安装完成: %s -> %s (%d 个文件)",
            descriptor.label, prefix, len(layout.files),
        )
        return layout

    def _apply(
        self,
        tree: SourceTree,
        descriptor: PackageDescriptor,
        mapping: InstallMapping,
        prefix: Path,
        layout: InstalledLayout,
        journal: _Journal | None,
    ) -> None:
        source = self._source_path(tree, mapping)
        target_dir = self.resolver.resolve(mapping.category, descriptor, prefix)

        if source.is_dir():
            try:
                pairs = [
                    (f, target_dir / f.relative_to(source))
                    for f in sorted(source.rglob("*"))
                    if not f.is_dir()
                ]
            except OSError as e:
                raise InstallError(
                    f"无法读取构建产物目录 {mapping.source_path}: {e}",
                    path=mapping.source_path,
                ) from e
        else:
            pairs = [(source, target_dir / source.name)]

        for src, dest in pairs:
            self._copy(src, dest, journal)
            rel = Path(mapping.source_path)
            if src != source:
                rel = rel / src.relative_to(source)
            layout.entries.append(InstalledFile(
                category=mapping.category, source=rel.as_posix(), destination=str(dest),
            ))
        logger.debug("  %s -> %s (%d)", mapping.source_path, target_dir, len(pairs))

    @staticmethod
    def _source_path(tree: SourceTree, mapping: InstallMapping) -> Path:
        root = tree.path.resolve()
        source = tree.path / mapping.source_path
        resolved = source.resolve()
        if resolved != root and root not in resolved.parents:
            raise InstallError(
                f"源路径越出源码树: {mapping.source_path}", path=mapping.source_path,
            )
        if not source.exists():
            raise InstallError(
                f"构建产物不存在: {mapping.source_path}", path=mapping.source_path,
            )
        return source

    @staticmethod
    def _copy(src: Path, dest: Path, journal: _Journal | None) -> None:
        try:
            if journal is not None:
                journal.before_mkdir(dest.parent)
            dest.parent.mkdir(parents=True, exist_ok=True)
            if dest.is_dir() and not dest.is_symlink():
                raise InstallError(f"目标已存在且为目录: {dest}", path=str(dest))
            if journal is not None:
                journal.before_write(dest)
            # 不通过旧符号链接写入其指向的文件
            if dest.is_symlink():
                dest.unlink()
            shutil.copy2(src, dest)
        except OSError as e:
            raise InstallError(f"无法写入 {dest}: {e}", path=str(dest)) from e
