"""描述符目录

目录文件结构（YAML）:

    formulae:
      slang:
        homepage: https://github.com/bww/Slang
        versions:
          "1":
            source_url: https://github.com/bww/Slang.git
            build_command: make
            build_environment: std
            dependencies: [go]
            install:
              - {source: bin/slang, category: binary}
              - {source: share/slang, category: sharedResources}

每个 (name, version) 解析为一个独立的不可变 PackageDescriptor。
目录只负责解析与持久化，不做依赖解析。
"""

from __future__ import annotations

import logging
import re
from typing import Any

from recipekit.core.exceptions import DescriptorNotFoundError, ValidationError
from recipekit.core.models import DestinationCategory, InstallMapping, PackageDescriptor
from recipekit.core.registry import YamlRegistry
from recipekit.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[a-zA-Z0-9_.+\-]+$")


def _version_key(version: str) -> list[tuple[int, Any]]:
    """自然排序键：'10' 排在 '9' 之后，'1.10' 排在 '1.9' 之后"""
    return [
        (0, int(part)) if part.isdigit() else (1, part)
        for part in re.split(r"(\d+)", version) if part
    ]


def _parse_mapping(raw: Any, index: int) -> InstallMapping:
    if isinstance(raw, dict):
        source = raw.get("source", raw.get("source_path", ""))
        category = raw.get("category", raw.get("destination", ""))
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        source, category = raw
    else:
        raise ValidationError(f"install[{index}] 格式无效: {raw!r}")
    return InstallMapping(
        source_path=str(source or ""),
        category=DestinationCategory.parse(category),
    )


def _parse_dependencies(raw: Any) -> frozenset[str]:
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        return frozenset(d.strip() for d in raw.split(",") if d.strip())
    return frozenset(str(d) for d in raw)


def descriptor_from_entry(
    name: str, version: str, entry: dict[str, Any], homepage: str = "",
) -> PackageDescriptor:
    """把目录中的单个版本条目解析为描述符（缺失字段留空，由 describe() 报告）"""
    if not isinstance(entry, dict):
        raise ValidationError(f"{name}@{version} 条目必须是字典")
    mappings = entry.get("install") or []
    if not isinstance(mappings, list):
        raise ValidationError(f"{name}@{version} install 必须是列表")
    return PackageDescriptor(
        name=name,
        version=str(version),
        source_url=str(entry.get("source_url", "") or ""),
        build_command=str(entry.get("build_command", "") or ""),
        dependencies=_parse_dependencies(entry.get("dependencies")),
        install_mappings=tuple(
            _parse_mapping(m, i) for i, m in enumerate(mappings)
        ),
        homepage=str(entry.get("homepage", homepage) or ""),
        build_environment=str(entry.get("build_environment", "") or ""),
        sha256=str(entry.get("sha256", "") or ""),
    )


def _entry_from_descriptor(descriptor: PackageDescriptor) -> dict[str, Any]:
    data = descriptor.to_dict()
    for key in ("name", "version", "homepage"):
        data.pop(key)
    return {k: v for k, v in data.items() if v not in ("", [])}


class DescriptorCatalog(YamlRegistry):
    """描述符目录，按 (name, version) 寻址"""

    section_key = "formulae"

    # ---- 查询 ----

    def names(self) -> list[str]:
        return sorted(self._names())

    def versions(self, name: str) -> list[str]:
        """某个包的全部版本，按自然顺序从旧到新"""
        entry = self._get_raw(name)
        if entry is None:
            return []
        return sorted((str(v) for v in (entry.get("versions") or {})), key=_version_key)

    def get(
        self, name: str, version: str | int | None = None,
    ) -> PackageDescriptor | None:
        """获取描述符；不指定版本时取最新版本（数字版本按字符串匹配）"""
        entry = self._get_raw(name)
        if entry is None:
            return None
        raw_versions = {str(k): v for k, v in (entry.get("versions") or {}).items()}
        if not raw_versions:
            return None
        ver = str(version) if version is not None else self.versions(name)[-1]
        if ver not in raw_versions:
            return None
        return descriptor_from_entry(
            name, ver, raw_versions[ver] or {}, homepage=entry.get("homepage", ""),
        )

    def require(
        self, name: str, version: str | int | None = None,
    ) -> PackageDescriptor:
        """获取描述符，不存在时抛 DescriptorNotFoundError"""
        descriptor = self.get(name, version)
        if descriptor is None:
            known = self.versions(name)
            hint = f"已有版本: {known}" if known else f"可用: {self.names()}"
            label = f"{name}@{version}" if version is not None else name
            raise DescriptorNotFoundError(f"描述符不存在: {label}。{hint}")
        return descriptor

    def load_all(self) -> list[PackageDescriptor]:
        """解析目录中全部 (name, version)"""
        result: list[PackageDescriptor] = []
        for name in self.names():
            for ver in self.versions(name):
                descriptor = self.get(name, ver)
                if descriptor is not None:
                    result.append(descriptor)
        return result

    def list_all(self) -> list[dict[str, Any]]:
        """列出目录摘要"""
        return [
            {
                "name": name,
                "homepage": (self._get_raw(name) or {}).get("homepage", ""),
                "versions": self.versions(name),
            }
            for name in self.names()
        ]

    # ---- 修改 ----

    def register(self, descriptor: PackageDescriptor) -> dict[str, Any]:
        """写入一个描述符版本；同 (name, version) 已存在时整体替换"""
        if not descriptor.name or not _NAME_RE.match(descriptor.name):
            raise ValidationError(f"描述符 name 无效: {descriptor.name!r}")
        if not descriptor.version:
            raise ValidationError(f"描述符 {descriptor.name} 缺少 version")
        entry = self._get_raw(descriptor.name) or {}
        if descriptor.homepage:
            entry["homepage"] = descriptor.homepage
        versions = entry.get("versions")
        if not isinstance(versions, dict):
            versions = {}
        # YAML 中 1 与 "1" 视为同一版本
        versions = {k: v for k, v in versions.items() if str(k) != descriptor.version}
        versions[descriptor.version] = _entry_from_descriptor(descriptor)
        entry["versions"] = versions
        self._put(descriptor.name, entry)
        logger.info("描述符已登记: %s", descriptor.label)
        return entry

    def remove(self, name: str, version: str | None = None) -> bool:
        """删除整个包或其中一个版本"""
        if version is None:
            removed = self._remove(name)
        else:
            entry = self._get_raw(name)
            versions = (entry or {}).get("versions") or {}
            key = next((k for k in versions if str(k) == version), None)
            if key is None:
                return False
            del versions[key]
            if versions:
                self._save()
                removed = True
            else:
                removed = self._remove(name)
        if removed:
            logger.info("描述符已移除: %s", f"{name}@{version}" if version else name)
        return removed

    def import_file(self, path: str) -> list[PackageDescriptor]:
        """从另一个目录文件导入全部条目，返回导入的描述符"""
        other = load_yaml(path).get(self.section_key) or {}
        imported: list[PackageDescriptor] = []
        for name, entry in other.items():
            if not isinstance(entry, dict):
                raise ValidationError(f"{path}: {name} 条目必须是字典")
            homepage = entry.get("homepage", "")
            for ver, raw in (entry.get("versions") or {}).items():
                descriptor = descriptor_from_entry(str(name), str(ver), raw or {}, homepage)
                self.register(descriptor)
                imported.append(descriptor)
        return imported
