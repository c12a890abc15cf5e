"""目标解析 - 目标类别到前缀下具体目录的映射

默认布局:
  binary           -> <prefix>/bin
  shared_resources -> <prefix>/share/<name>

模板可通过配置覆盖，支持 {name} / {version} 占位符。
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from recipekit.core.exceptions import ConfigError
from recipekit.core.models import DestinationCategory, PackageDescriptor


class DestinationResolver(Protocol):
    """驱动方提供的目标解析能力"""

    def resolve(
        self, category: DestinationCategory,
        descriptor: PackageDescriptor, prefix: Path,
    ) -> Path:
        ...


class PrefixLayout:
    """基于模板的默认目标解析器"""

    def __init__(self, templates: dict[str, str] | None = None) -> None:
        self.templates: dict[DestinationCategory, str] = {
            DestinationCategory.BINARY: "bin",
            DestinationCategory.SHARED_RESOURCES: "share/{name}",
        }
        for key, template in (templates or {}).items():
            self.templates[DestinationCategory.parse(key)] = template

    def resolve(
        self, category: DestinationCategory,
        descriptor: PackageDescriptor, prefix: Path,
    ) -> Path:
        template = self.templates[category]
        try:
            relative = template.format(name=descriptor.name, version=descriptor.version)
        except (KeyError, IndexError) as e:
            raise ConfigError(f"布局模板无效 {category.value}: {template}") from e
        rel = Path(relative)
        if rel.is_absolute() or ".." in rel.parts:
            raise ConfigError(f"布局模板必须是前缀内的相对路径: {template}")
        return prefix / rel
