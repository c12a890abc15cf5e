"""描述符解释器 - 拉取 → 构建 → 安装

单次运行的状态机:

    loaded → fetching → fetched → building → built → installing → installed
       └──────────┴──────────────────┴──────────────────┴──→ failed{stage, cause}

- 校验在获取任何资源之前进行，失败阶段记为 loaded
- 任一阶段失败即中止后续阶段，失败阶段与原始异常一起返回
- 临时源码树在 finally 中释放（keep_source 时保留用于调试）
- 状态不可重入：重试需要新的运行（新的临时源码树）
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from recipekit.core.exceptions import RecipeError, ValidationError
from recipekit.core.models import InstalledLayout, PackageDescriptor, RunResult, Stage
from recipekit.core.validator import describe, ensure_valid
from recipekit.services.build.executor import BuildExecutor
from recipekit.services.fetch.fetcher import SourceFetcher
from recipekit.services.fetch.workspace import SourceTree
from recipekit.services.install.installer import Installer

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.LOADED: frozenset({Stage.FETCHING, Stage.FAILED}),
    Stage.FETCHING: frozenset({Stage.FETCHED, Stage.FAILED}),
    Stage.FETCHED: frozenset({Stage.BUILDING, Stage.FAILED}),
    Stage.BUILDING: frozenset({Stage.BUILT, Stage.FAILED}),
    Stage.BUILT: frozenset({Stage.INSTALLING, Stage.FAILED}),
    Stage.INSTALLING: frozenset({Stage.INSTALLED, Stage.FAILED}),
}


class InstallRun:
    """单次运行的状态跟踪"""

    def __init__(self, descriptor: PackageDescriptor) -> None:
        self.descriptor = descriptor
        self.state = Stage.LOADED
        self.history: list[Stage] = [Stage.LOADED]
        self._start = time.monotonic()

    def advance(self, target: Stage) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            raise RuntimeError(
                f"非法状态迁移 {self.descriptor.label}: {self.state.value} -> {target.value}"
            )
        self.state = target
        self.history.append(target)
        logger.debug(
            "%s -> %s", self.descriptor.label, target.value,
            extra={"package": self.descriptor.name, "stage": target.value},
        )

    def succeed(self, layout: InstalledLayout) -> RunResult:
        self.advance(Stage.INSTALLED)
        return RunResult(
            descriptor=self.descriptor, status=Stage.INSTALLED,
            layout=layout, history=list(self.history),
            duration=time.monotonic() - self._start,
        )

    def fail(self, cause: RecipeError) -> RunResult:
        stage = self.state
        self.advance(Stage.FAILED)
        logger.error(
            "安装失败 %s [%s]: %s", self.descriptor.label, stage.value, cause,
            extra={
                "package": self.descriptor.name,
                "version": self.descriptor.version,
                "stage": stage.value,
            },
        )
        return RunResult(
            descriptor=self.descriptor, status=Stage.FAILED, stage=stage,
            cause=cause, history=list(self.history),
            duration=time.monotonic() - self._start,
        )


class RecipeInterpreter:
    """按固定顺序执行描述符的 拉取 / 构建 / 安装"""

    def __init__(
        self,
        fetcher: SourceFetcher | None = None,
        builder: BuildExecutor | None = None,
        installer: Installer | None = None,
        *,
        fetch_timeout: float | None = None,
        build_timeout: float | None = None,
        keep_source: bool = False,
    ) -> None:
        self.fetcher = fetcher or SourceFetcher()
        self.builder = builder or BuildExecutor()
        self.installer = installer or Installer()
        self.fetch_timeout = fetch_timeout
        self.build_timeout = build_timeout
        self.keep_source = keep_source

    # ---- 单阶段操作 ----

    @staticmethod
    def describe(descriptor: PackageDescriptor) -> list[str]:
        return describe(descriptor)

    def fetch(self, descriptor: PackageDescriptor) -> SourceTree:
        return self.fetcher.fetch(descriptor, timeout=self.fetch_timeout)

    def build(self, tree: SourceTree, descriptor: PackageDescriptor) -> None:
        self.builder.build(tree, descriptor, timeout=self.build_timeout)

    def install(
        self, tree: SourceTree, descriptor: PackageDescriptor, prefix: str | Path,
    ) -> InstalledLayout:
        return self.installer.install(tree, descriptor, prefix)

    # ---- 完整运行 ----

    def run(
        self, descriptor: PackageDescriptor, prefix: str | Path,
        *, keep_source: bool | None = None,
    ) -> RunResult:
        """执行一次完整运行，返回 Installed(layout) 或 Failed(stage, cause)"""
        keep = self.keep_source if keep_source is None else keep_source
        run = InstallRun(descriptor)
        logger.info(
            "开始安装: %s -> %s", descriptor.label, prefix,
            extra={"package": descriptor.name, "version": descriptor.version},
        )

        try:
            ensure_valid(descriptor)
        except ValidationError as e:
            return run.fail(e)

        tree: SourceTree | None = None
        try:
            run.advance(Stage.FETCHING)
            tree = self.fetch(descriptor)
            run.advance(Stage.FETCHED)

            run.advance(Stage.BUILDING)
            self.build(tree, descriptor)
            run.advance(Stage.BUILT)

            run.advance(Stage.INSTALLING)
            layout = self.install(tree, descriptor, prefix)
            result = run.succeed(layout)
        except RecipeError as e:
            result = run.fail(e)
        finally:
            if tree is not None and not keep:
                tree.release()

        if tree is not None and keep:
            result.source_path = str(tree.path)
            logger.info("保留源码树: %s", tree.root)
        if result.success:
            logger.info(
                "安装成功: %s (%.1fs)", descriptor.label, result.duration,
                extra={"package": descriptor.name, "version": descriptor.version},
            )
        return result
