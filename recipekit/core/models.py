"""核心数据模型

描述符及其执行结果集中定义。描述符一经加载即不可变：
同一个包的不同修订是 name 相同、version 不同的独立实例。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from recipekit.core.exceptions import RecipeError, ValidationError

# =========================================================================
# 描述符
# =========================================================================


class DestinationCategory(str, Enum):
    """安装目标类别，由目标解析器映射到前缀下的具体目录"""

    BINARY = "binary"
    SHARED_RESOURCES = "shared_resources"

    @classmethod
    def parse(cls, text: str) -> DestinationCategory:
        """接受 binary / shared_resources / sharedResources 等写法"""
        key = str(text).strip().replace("-", "_")
        snake = "".join(
            f"_{c.lower()}" if c.isupper() else c for c in key
        ).lstrip("_")
        for member in cls:
            if member.value in (key.lower(), snake):
                return member
        raise ValidationError(
            f"不支持的目标类别: {text}，"
            f"可选: {', '.join(m.value for m in cls)}"
        )


@dataclass(frozen=True)
class InstallMapping:
    """(源码树内相对路径, 目标类别)"""

    source_path: str
    category: DestinationCategory

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source_path, "category": self.category.value}


@dataclass(frozen=True)
class PackageDescriptor:
    """单个包的 拉取 / 构建 / 安装 配方"""

    name: str
    source_url: str = ""
    version: str = ""
    dependencies: frozenset[str] = frozenset()
    build_command: str = ""
    install_mappings: tuple[InstallMapping, ...] = ()
    homepage: str = ""
    build_environment: str = ""   # 不透明标签，原样交给执行设施
    sha256: str = ""              # 归档来源的可选校验和

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.version)

    @property
    def label(self) -> str:
        return f"{self.name}@{self.version}" if self.version else self.name

    def to_dict(self) -> dict[str, Any]:
        """序列化为目录条目格式（name / version 由目录层级承载，这里也一并给出）"""
        return {
            "name": self.name,
            "version": self.version,
            "homepage": self.homepage,
            "source_url": self.source_url,
            "build_command": self.build_command,
            "build_environment": self.build_environment,
            "sha256": self.sha256,
            "dependencies": sorted(self.dependencies),
            "install": [m.to_dict() for m in self.install_mappings],
        }


# =========================================================================
# 执行状态与结果
# =========================================================================


class Stage(str, Enum):
    """单次安装运行的状态"""

    LOADED = "loaded"
    FETCHING = "fetching"
    FETCHED = "fetched"
    BUILDING = "building"
    BUILT = "built"
    INSTALLING = "installing"
    INSTALLED = "installed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (Stage.INSTALLED, Stage.FAILED)


@dataclass(frozen=True)
class InstalledFile:
    """一次映射落盘产生的单个文件"""

    category: DestinationCategory
    source: str        # 源码树内相对路径
    destination: str   # 前缀下的绝对路径


@dataclass
class InstalledLayout:
    """安装结果：按安装顺序记录的文件列表"""

    prefix: str
    entries: list[InstalledFile] = field(default_factory=list)

    @property
    def files(self) -> list[str]:
        """最终落盘的目标文件（去重、排序；重复目标以最后写入者为准）"""
        return sorted({e.destination for e in self.entries})

    def to_dict(self) -> dict[str, Any]:
        return {"prefix": self.prefix, "files": self.files}


@dataclass
class RunResult:
    """解释器返回值：Installed(layout) 或 Failed(stage, cause)"""

    descriptor: PackageDescriptor
    status: Stage
    stage: Stage | None = None          # 失败时为失败所在阶段
    layout: InstalledLayout | None = None
    cause: RecipeError | None = None
    history: list[Stage] = field(default_factory=list)
    duration: float = 0.0
    source_path: str = ""               # 仅 keep_source 时保留

    @property
    def success(self) -> bool:
        return self.status == Stage.INSTALLED

    def to_dict(self) -> dict[str, Any]:
        """驱动方上报用：{package, version, status, stage, cause}"""
        data: dict[str, Any] = {
            "package": self.descriptor.name,
            "version": self.descriptor.version,
            "status": self.status.value,
            "stage": self.stage.value if self.stage else self.status.value,
            "duration": round(self.duration, 3),
        }
        if self.cause is not None:
            data["cause"] = str(self.cause)
            data["error_code"] = self.cause.code
        if self.layout is not None:
            data["layout"] = self.layout.to_dict()
        if self.source_path:
            data["source_path"] = self.source_path
        return data
