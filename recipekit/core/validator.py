"""描述符静态校验

describe() 在任何资源获取之前调用，返回违反的约束列表，空列表表示格式良好。
"""

from __future__ import annotations

from recipekit.core.exceptions import ValidationError
from recipekit.core.models import PackageDescriptor


def describe(descriptor: PackageDescriptor) -> list[str]:
    """检查可安装所需字段，每个缺失字段对应一条信息"""
    problems: list[str] = []
    if not descriptor.name.strip():
        problems.append("name: 不能为空")
    if not descriptor.source_url.strip():
        problems.append("source_url: 不能为空")
    if not descriptor.build_command.strip():
        problems.append("build_command: 不能为空")
    if not descriptor.install_mappings:
        problems.append("install_mappings: 至少需要一条映射")
    for i, mapping in enumerate(descriptor.install_mappings):
        if not mapping.source_path.strip():
            problems.append(f"install_mappings[{i}].source_path: 不能为空")
    return problems


def ensure_valid(descriptor: PackageDescriptor) -> None:
    """校验失败时抛 ValidationError，details 为违反项列表"""
    problems = describe(descriptor)
    if problems:
        raise ValidationError(
            f"描述符 {descriptor.label} 不合法: {'; '.join(problems)}",
            details=problems,
        )
