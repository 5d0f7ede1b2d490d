"""Shell 命令执行工具：统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换。
字符串命令交给 shell 解释（构建步骤里常见 && 与重定向），列表命令直接执行。
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Protocol

from extbuild.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用

    测试时可注入记录型实现，无需 patch subprocess。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地命令执行器（默认实现）

    capture=False 时输出直接透传到当前进程，便于外部协调器重定向到日志文件。
    标准输入固定为 /dev/null，patch 等工具不会停下来等待交互。
    不设置超时，卡住的构建步骤只能由外部终止进程。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        try:
            r = subprocess.run(
                cmd, shell=isinstance(cmd, str), stdin=subprocess.DEVNULL,
                capture_output=capture, text=True,
                cwd=cwd, env=dict(env) if env is not None else None,
                check=False,
            )
        except OSError as e:
            # 可执行文件不存在等情况统一折算为失败结果
            logger.error("命令启动失败: %s (%s)", cmd, e)
            return CommandResult(returncode=127, stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout or "",
            stderr=r.stderr or "",
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


# =========================================================================
# 便捷函数
# =========================================================================

def format_cmd(cmd: str | list[str]) -> str:
    """命令的可读形式，用于日志"""
    if isinstance(cmd, str):
        return cmd
    return " ".join(shlex.quote(a) for a in cmd)


def require_tool(name: str, path: str | None = None) -> str:
    """确认工具在搜索路径中，返回其绝对路径"""
    found = shutil.which(name, path=path)
    if not found:
        raise ConfigError(f"需要 '{name}' 命令但未在 PATH 中找到")
    return found
