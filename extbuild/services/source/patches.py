"""补丁应用

按清单顺序逐个处理: 先 patch --dry-run 预检，通过后再真正应用。
任何失败都中止整个构建，不做回滚。已应用的补丁记录在工作目录旁的
.<工作目录名>.extbuild-patches 中（不写进源码树），再次调用时跳过，
未记录的仍走同样的预检。
"""

from __future__ import annotations

import logging
from pathlib import Path

from extbuild.core.context import BuildContext
from extbuild.core.exceptions import PatchError
from extbuild.core.models import PackageSpec
from extbuild.utils.shell import CommandExecutor, format_cmd, get_executor

logger = logging.getLogger(__name__)

APPLIED_RECORD_SUFFIX = ".extbuild-patches"


class PatchStage:
    """补丁预检与应用"""

    def __init__(self, patches_dir: Path, executor: CommandExecutor | None = None) -> None:
        self.patches_dir = patches_dir
        self._executor = executor

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    @staticmethod
    def record_path(work_dir: Path) -> Path:
        """补丁记录文件，与工作目录同级"""
        return work_dir.parent / f".{work_dir.name}{APPLIED_RECORD_SUFFIX}"

    @classmethod
    def applied(cls, work_dir: Path) -> list[str]:
        record = cls.record_path(work_dir)
        if not record.exists():
            return []
        return [ln for ln in record.read_text(encoding="utf-8").splitlines() if ln]

    @classmethod
    def _record(cls, work_dir: Path, patch: str) -> None:
        with open(cls.record_path(work_dir), "a", encoding="utf-8") as f:
            f.write(patch + "\n")

    def apply(self, spec: PackageSpec, work_dir: Path, ctx: BuildContext) -> list[str]:
        """应用清单中的补丁，返回本次实际应用的补丁名"""
        if not spec.patches:
            logger.info("%s 未指定补丁", spec.name)
            return []

        done = set(self.applied(work_dir))
        applied_now: list[str] = []
        for patch in spec.patches:
            if not patch:
                continue
            if patch in done:
                logger.info("补丁已应用，跳过: %s", patch)
                continue
            path = self.patches_dir / patch
            if not path.is_file():
                raise PatchError(f"补丁文件不存在: {path}")

            logger.info("应用补丁 [%s] -> %s", patch, spec.name)
            self._run(["patch", "-p1", "--dry-run", "-i", str(path)], work_dir, ctx,
                      f"补丁预检失败: {patch}")
            self._run(["patch", "-p1", "-i", str(path)], work_dir, ctx,
                      f"补丁应用失败: {patch}（源码树可能已被部分修改）")
            self._record(work_dir, patch)
            applied_now.append(patch)
        return applied_now

    def _run(self, cmd: list[str], work_dir: Path, ctx: BuildContext, message: str) -> None:
        logger.debug("  patch: %s (cwd=%s)", format_cmd(cmd), work_dir)
        r = self.executor.execute(cmd, cwd=str(work_dir), env=ctx.env, capture=True)
        if not r.success:
            detail = (r.stdout + r.stderr).strip()[:300]
            raise PatchError(f"{message} (rc={r.returncode}) {detail}".rstrip())
