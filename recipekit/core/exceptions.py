"""统一异常体系

所有业务异常继承 RecipeError。每个阶段失败都对应一个具体子类，
解释器把它们连同失败阶段一起交给驱动方，CLI / Web 层据此输出友好提示。
"""

from __future__ import annotations


class RecipeError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(RecipeError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class DescriptorNotFoundError(RecipeError):
    """目录中不存在指定的描述符或版本"""

    code = "DESCRIPTOR_NOT_FOUND"


class ValidationError(RecipeError):
    """描述符格式不合法（在任何 IO 之前检出）"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class FetchError(RecipeError):
    """源码拉取失败：地址不可达、VCS 失败或归档损坏"""

    code = "FETCH_ERROR"


class BuildError(RecipeError):
    """构建命令以非零退出码结束"""

    code = "BUILD_ERROR"

    def __init__(self, message: str, exit_code: int, output: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class InstallError(RecipeError):
    """产物缺失或目标目录不可写"""

    code = "INSTALL_ERROR"

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class StageTimeoutError(RecipeError):
    """阶段执行超过调用方给定的时限"""

    code = "TIMEOUT"

    def __init__(self, stage: str, seconds: float | None) -> None:
        super().__init__(f"{stage} 阶段超时 ({seconds}s)")
        self.stage = stage
        self.seconds = seconds
