"""安装服务 - 驱动方：目录查找 + 解释器执行 + 批量并发

依赖解析不在本服务职责内：批量安装只接受彼此独立的包，
调用方负责按依赖顺序分批提交。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from recipekit.core.catalog import DescriptorCatalog
from recipekit.core.exceptions import ValidationError
from recipekit.core.models import PackageDescriptor, RunResult
from recipekit.core.validator import describe
from recipekit.services.interpreter import RecipeInterpreter

logger = logging.getLogger(__name__)

# (name, version)，version 为 None 时取最新
PackageRef = tuple[str, "str | None"]


class InstallService:
    """包安装的驱动入口"""

    def __init__(
        self,
        catalog: DescriptorCatalog,
        interpreter: RecipeInterpreter,
        prefix: str = "",
        max_workers: int = 4,
    ) -> None:
        if not prefix:
            from recipekit.core.config import get_config
            prefix = get_config().prefix
        self.catalog = catalog
        self.interpreter = interpreter
        self.prefix = prefix
        self.max_workers = max(1, max_workers)

    def validate(self, name: str, version: str | None = None) -> list[str]:
        """对目录中的描述符做静态校验"""
        return describe(self.catalog.require(name, version))

    def install(
        self, name: str, version: str | None = None,
        *, prefix: str = "", keep_source: bool | None = None,
    ) -> RunResult:
        """安装目录中的一个包（描述符不存在时抛 DescriptorNotFoundError）"""
        descriptor = self.catalog.require(name, version)
        return self.install_descriptor(descriptor, prefix=prefix, keep_source=keep_source)

    def install_descriptor(
        self, descriptor: PackageDescriptor,
        *, prefix: str = "", keep_source: bool | None = None,
    ) -> RunResult:
        target = Path(prefix or self.prefix)
        return self.interpreter.run(descriptor, target, keep_source=keep_source)

    def install_many(
        self, refs: list[PackageRef], *, parallel: int = 1, prefix: str = "",
    ) -> list[RunResult]:
        """并发安装一批互相独立的包，结果顺序与 refs 一致

        同一批次中不允许出现重名包（它们会写入相同的目标路径）。
        """
        descriptors = [self.catalog.require(name, ver) for name, ver in refs]
        names = [d.name for d in descriptors]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValidationError(
                f"同一批次中包名重复: {', '.join(duplicates)}", details=duplicates,
            )

        workers = min(max(1, parallel), self.max_workers, len(descriptors) or 1)
        if workers == 1:
            return [self.install_descriptor(d, prefix=prefix) for d in descriptors]

        logger.info("并发安装 %d 个包 (workers=%d)", len(descriptors), workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self.install_descriptor, d, prefix=prefix)
                for d in descriptors
            ]
            results = []
            for descriptor, future in zip(descriptors, futures):
                result = future.result()
                logger.info("完成: %s -> %s", descriptor.label, result.status.value)
                results.append(result)
        return results
