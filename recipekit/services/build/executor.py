"""构建执行器

在源码树内以 /bin/sh -c 执行描述符的 build_command。
非零退出抛 BuildError（携带退出码与捕获输出），超时抛 StageTimeoutError。
构建失败被视为非瞬时错误，不做重试。
"""

from __future__ import annotations

import logging
import os
import time

from recipekit.core.exceptions import BuildError, StageTimeoutError
from recipekit.core.models import PackageDescriptor
from recipekit.services.fetch.workspace import SourceTree
from recipekit.utils.shell import CommandExecutor, get_executor, shell_args

logger = logging.getLogger(__name__)

STAGE = "building"

# 构建环境标签原样透传给构建进程
BUILD_ENV_VAR = "RECIPEKIT_BUILD_ENV"

# BuildError 信息中保留的输出长度
_OUTPUT_TAIL = 2000

# 进程无法启动时的退出码（与 shell 的 "command not found" 一致）
_SPAWN_FAILED = 127


class BuildExecutor:
    """构建命令执行设施"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        environments: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self._executor = executor
        self.environments = environments or {}

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def build_env(self, descriptor: PackageDescriptor) -> dict[str, str]:
        """继承当前进程环境，叠加构建环境标签及其配置的变量"""
        env = dict(os.environ)
        label = descriptor.build_environment
        if label:
            env[BUILD_ENV_VAR] = label
            env.update(self.environments.get(label, {}))
        return env

    def build(
        self, tree: SourceTree, descriptor: PackageDescriptor,
        *, timeout: float | None = None,
    ) -> None:
        logger.info("  build: %s (cwd=%s)", descriptor.build_command, tree.path)
        start = time.monotonic()
        try:
            r = self.executor.execute(
                shell_args(descriptor.build_command),
                cwd=str(tree.path),
                env=self.build_env(descriptor),
                timeout=timeout,
            )
        except OSError as e:
            raise BuildError(
                f"无法启动构建 {descriptor.label}: {e}", exit_code=_SPAWN_FAILED,
            ) from e
        duration = time.monotonic() - start
        if r.timed_out:
            raise StageTimeoutError(STAGE, timeout)
        if not r.success:
            output = r.output
            raise BuildError(
                f"构建失败 {descriptor.label} (rc={r.returncode}): {output[-500:]}",
                exit_code=r.returncode,
                output=output[-_OUTPUT_TAIL:],
            )
        logger.info("构建完成: %s (%.1fs)", descriptor.label, duration)
