"""源码获取策略

策略集合封闭，按清单数据（source_layout, enable_sha）选择:
- ShallowClone: git clone --depth 1 --branch <commitish>
- FullCloneThenCheckout: 完整克隆后 git fetch + git checkout <commitish>，可检出任意 commit
- SpecialLayoutClone: 非标准布局仓库，浅克隆到指定子目录并预建 build 目录
- NoSource: 无上游仓库，直接创建工作目录

工作目录已存在时不执行任何 git 命令，这是唯一的幂等标记。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from extbuild.core.context import BuildContext
from extbuild.core.exceptions import AcquisitionError
from extbuild.core.models import PackageSpec, SourceLayout
from extbuild.utils.shell import CommandExecutor, format_cmd, get_executor

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionResult:
    """获取结果"""

    work_dir: Path
    strategy: str
    fetched: bool = False


class SourceStrategy(ABC):
    """获取策略基类"""

    name: str = ""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self._executor = executor

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def work_dir(self, spec: PackageSpec, source_dir: Path) -> Path:
        """构建步骤执行所在目录"""
        return source_dir / spec.name

    def acquire(self, spec: PackageSpec, source_dir: Path, ctx: BuildContext) -> AcquisitionResult:
        work = self.work_dir(spec, source_dir)
        if work.exists():
            logger.info("源码目录已存在，跳过获取: %s", work)
            return AcquisitionResult(work_dir=work, strategy=self.name, fetched=False)
        source_dir.mkdir(parents=True, exist_ok=True)
        self._fetch(spec, source_dir, work, ctx)
        return AcquisitionResult(work_dir=work, strategy=self.name, fetched=True)

    @abstractmethod
    def _fetch(self, spec: PackageSpec, source_dir: Path, work: Path, ctx: BuildContext) -> None:
        """把源码放到 work 目录"""

    def _git(self, args: list[str], cwd: Path, ctx: BuildContext, pkg: str) -> None:
        cmd = ["git", *args]
        logger.info("  git: %s (cwd=%s)", format_cmd(cmd), cwd)
        r = self.executor.execute(cmd, cwd=str(cwd), env=ctx.env, capture=True)
        if not r.success:
            raise AcquisitionError(
                f"git {args[0]} 失败 [{pkg}] (rc={r.returncode}): {r.stderr[:300]}"
            )


class ShallowClone(SourceStrategy):
    """按分支/标签浅克隆"""

    name = "shallow"

    def _fetch(self, spec: PackageSpec, source_dir: Path, work: Path, ctx: BuildContext) -> None:
        logger.info("克隆 %s (repo=%s, commitish=%s)", spec.name, spec.source_repository, spec.commitish)
        self._git(
            ["clone", "--recurse-submodules", "--depth", "1", "--branch", spec.commitish,
             spec.source_repository, work.name],
            source_dir, ctx, spec.name,
        )


class FullCloneThenCheckout(SourceStrategy):
    """完整历史克隆，再检出任意 commit"""

    name = "full"

    def _fetch(self, spec: PackageSpec, source_dir: Path, work: Path, ctx: BuildContext) -> None:
        logger.info("完整克隆 %s (repo=%s, commit=%s)", spec.name, spec.source_repository, spec.commitish)
        self._git(
            ["clone", "--recurse-submodules", spec.source_repository, work.name],
            source_dir, ctx, spec.name,
        )
        self._git(["fetch"], work, ctx, spec.name)
        self._git(["checkout", spec.commitish], work, ctx, spec.name)


class SpecialLayoutClone(SourceStrategy):
    """非标准布局仓库（如编译器工具链 monorepo）

    源码在 <source_dir>/<source_subdirectory>，另有 <source_dir>/build 供树外构建。
    """

    name = "special"

    def work_dir(self, spec: PackageSpec, source_dir: Path) -> Path:
        return source_dir / (spec.source_subdirectory or spec.name)

    def acquire(self, spec: PackageSpec, source_dir: Path, ctx: BuildContext) -> AcquisitionResult:
        (source_dir / "build").mkdir(parents=True, exist_ok=True)
        return super().acquire(spec, source_dir, ctx)

    def _fetch(self, spec: PackageSpec, source_dir: Path, work: Path, ctx: BuildContext) -> None:
        logger.info("克隆 %s 到 %s (commitish=%s)", spec.name, work.name, spec.commitish)
        self._git(
            ["clone", "--depth", "1", "--branch", spec.commitish,
             spec.source_repository, work.name],
            source_dir, ctx, spec.name,
        )


class NoSource(SourceStrategy):
    """无上游仓库，仅创建工作目录"""

    name = "none"

    def _fetch(self, spec: PackageSpec, source_dir: Path, work: Path, ctx: BuildContext) -> None:
        logger.info("%s 无上游源码，创建工作目录 %s", spec.name, work)
        work.mkdir(parents=True, exist_ok=True)


def select_strategy(spec: PackageSpec, executor: CommandExecutor | None = None) -> SourceStrategy:
    """按清单数据选择获取策略"""
    if spec.source_layout is SourceLayout.NONE:
        return NoSource(executor)
    if spec.source_layout is SourceLayout.SPECIAL:
        return SpecialLayoutClone(executor)
    if spec.uses_commit_tracking:
        return FullCloneThenCheckout(executor)
    return ShallowClone(executor)
