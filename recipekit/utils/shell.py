"""Shell 命令执行工具 - 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行：构建命令、git 拉取都经由这里，
测试时可注入替身实现，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

# 构建命令是不透明的 shell 指令（可含管道、&&、重定向）
SHELL = "/bin/sh"


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """合并后的输出，供错误信息使用"""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议

    实现此协议即可替换底层执行方式（本地、容器、远程等）。
    超时不抛异常，而是返回 timed_out=True 的结果，由调用方决定如何上报。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """执行命令；可执行文件不存在等启动失败以 OSError 抛出"""
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        # 独立进程组：超时时连同构建派生的子进程一起终止
        with subprocess.Popen(
            args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True,
            cwd=cwd, env=env, start_new_session=True,
        ) as proc:
            try:
                stdout, stderr = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning("命令超时 (%ss): %s", timeout, args)
                _kill_group(proc)
                stdout, stderr = proc.communicate()
                return CommandResult(
                    returncode=-1,
                    stdout=_as_text(stdout),
                    stderr=_as_text(stderr),
                    timed_out=True,
                )
        return CommandResult(
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
        )


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        # 进程组已全部退出
        return


def _as_text(data: str | bytes | None) -> str:
    # 超时后收集到的输出可能为空
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def shell_args(command: str) -> list[str]:
    """把不透明的 shell 指令包装成 argv"""
    return [SHELL, "-c", command]


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
