"""构建执行器

职责:
- 按顺序执行已展开的构建步骤（每步一条 shell 命令）
- 固定次数、固定间隔的重试
- 重试耗尽即中止，后续步骤不再执行
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from extbuild.core.context import BuildContext
from extbuild.core.exceptions import BuildStepError
from extbuild.core.models import StepResult
from extbuild.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


class BuildExecutor:
    """构建执行器"""

    def __init__(
        self,
        retries: int = 0,
        retry_delay: float = 1.0,
        executor: CommandExecutor | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.retries = max(retries, 0)
        self.retry_delay = retry_delay
        self._executor = executor
        self._sleep = sleep

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def run_step(self, command: str, work_dir: Path, ctx: BuildContext) -> StepResult:
        """执行单个步骤，最多尝试 retries + 1 次"""
        attempts = self.retries + 1
        rc = 0
        for attempt in range(1, attempts + 1):
            logger.info("执行: %s", command)
            r = self.executor.execute(command, cwd=str(work_dir), env=ctx.env)
            if r.success:
                return StepResult(command=command, success=True, attempts=attempt)
            rc = r.returncode
            if attempt < attempts:
                logger.warning(
                    "命令失败 (rc=%d)，%.1fs 后重试 (剩余 %d 次)",
                    rc, self.retry_delay, attempts - attempt,
                )
                self._sleep(self.retry_delay)
        raise BuildStepError(
            f"构建步骤失败 [{ctx.target}] (rc={rc}, 尝试 {attempts} 次): {command}",
            step=command, attempts=attempts,
        )

    def run_all(self, steps: list[str], work_dir: Path, ctx: BuildContext) -> list[StepResult]:
        """按顺序执行全部步骤，空步骤跳过"""
        steps = [s for s in steps if s]
        if not steps:
            logger.warning("%s 没有构建步骤", ctx.target)
            return []
        start = time.monotonic()
        results = [self.run_step(s, work_dir, ctx) for s in steps]
        logger.info(
            "构建步骤完成: %s (%d 步, %.1fs)",
            ctx.target, len(results), time.monotonic() - start,
        )
        return results
