"""打包服务

调用外部 fpm 把安装前缀下的目录打成 rpm/deb。
声明的目录都不存在时不调用 fpm，改为在脚本根目录创建同名空文件，
外部协调器据此认为该目标已产出。
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from extbuild.core.config import Config
from extbuild.core.context import BuildContext
from extbuild.core.deps import DependencyResolver
from extbuild.core.identity import PathCalculator
from extbuild.core.models import PackageSpec
from extbuild.core.exceptions import PackagingError
from extbuild.utils.shell import CommandExecutor, format_cmd, get_executor

logger = logging.getLogger(__name__)


@dataclass
class PackageOutcome:
    """打包结果"""

    artifact: Path
    placeholder: bool


class Packager:
    """fpm 打包器"""

    def __init__(
        self,
        config: Config,
        paths: PathCalculator,
        deps: DependencyResolver,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.config = config
        self.paths = paths
        self.deps = deps
        self._executor = executor

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def staged_directories(self, spec: PackageSpec) -> list[str]:
        """存在于安装前缀下的待打包目录（相对 source_dir），缺失的记录日志后跳过"""
        prefix = self.paths.install_prefix(spec.name)
        staged: list[str] = []
        for directory in spec.package_directories:
            if not directory:
                continue
            full = prefix / directory
            if full.exists():
                staged.append(self.paths.staged_path(spec.name, directory))
            else:
                logger.info("跳过打包 [%s]（不存在）", full)
        return staged

    def build_command(self, spec: PackageSpec, fpm: str, staged: list[str]) -> list[str]:
        pkg = spec.name
        target = self.paths.target
        cmd = [
            fpm, "-f", "-s", "dir",
            "-t", target.package_type,
            "-n", self.paths.canonical_name(pkg),
            "-v", self.paths.artifact_version(pkg),
            "-a", target.architecture,
            "--iteration", self.paths.artifact_revision(pkg),
        ]
        if target.package_type == "rpm":
            for tag in spec.rpm_tags:
                cmd += ["--rpm-tag", tag]
        for dep in self.deps.resolve(pkg):
            cmd += ["-d", dep]
        cmd += [
            "-m", self.config.maintainer,
            "--vendor", self.config.vendor,
            "--license", spec.license,
            "--description", f"{self.config.description_prefix}: {pkg}",
            "--url", self.config.url,
            "-C", str(self.paths.source_dir(pkg)),
        ]
        cmd += staged
        return cmd

    def locate_fpm(self, ctx: BuildContext) -> str:
        """在上下文搜索路径中查找 fpm，找不到则用 gem 安装指定版本"""
        fpm = shutil.which("fpm", path=ctx.search_path)
        if fpm:
            logger.info("找到 fpm: %s", fpm)
            return fpm

        logger.info("未找到 fpm，尝试安装 fpm %s", self.config.fpm_version)
        if not shutil.which("gem", path=ctx.search_path):
            raise PackagingError("未找到 gem 命令，无法安装 fpm")
        r = self.executor.execute(
            ["gem", "install", "-v", self.config.fpm_version, "fpm", "--no-document"],
            cwd=str(ctx.script_root), env=ctx.env,
        )
        if not r.success:
            raise PackagingError(f"安装 fpm 失败 (rc={r.returncode})")
        fpm = shutil.which("fpm", path=ctx.search_path)
        if not fpm:
            raise PackagingError("安装后仍未找到 fpm")
        return fpm

    def package(self, spec: PackageSpec, ctx: BuildContext) -> PackageOutcome:
        pkg = spec.name
        artifact = ctx.script_root / self.paths.artifact_filename(pkg)
        logger.info("打包 [%s] -> %s", pkg, artifact.name)

        staged = self.staged_directories(spec)
        if not staged:
            logger.info("%s 没有可打包的目录，创建空产物文件 %s", pkg, artifact)
            artifact.parent.mkdir(parents=True, exist_ok=True)
            artifact.touch()
            return PackageOutcome(artifact=artifact, placeholder=True)

        ctx = ctx.with_ruby(self.config)
        cmd = self.build_command(spec, self.locate_fpm(ctx), staged)
        logger.info("执行 fpm: %s", format_cmd(cmd))
        r = self.executor.execute(cmd, cwd=str(ctx.script_root), env=ctx.env)
        if not r.success:
            raise PackagingError(f"fpm 打包失败 [{pkg}] (rc={r.returncode})")
        return PackageOutcome(artifact=artifact, placeholder=False)
