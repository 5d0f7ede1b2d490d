"""构建上下文

每个目标一次调用构造一个不可变的 BuildContext，显式传给获取、构建、打包各阶段。
编译器选择、搜索路径追加、gem 目录都只体现在 ctx.env 中，不修改进程环境。
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from extbuild.core.config import Config
from extbuild.core.identity import PathCalculator

logger = logging.getLogger(__name__)


def detect_jobs(cpu_count: int | None = None) -> int:
    """并行编译任务数: max(CPU 数 - 1, 1)"""
    n = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return max(n - 1, 1)


def _prepend_path(env: dict[str, str], directory: str) -> None:
    current = env.get("PATH", "")
    env["PATH"] = f"{directory}{os.pathsep}{current}" if current else directory


@dataclass(frozen=True)
class BuildContext:
    """单个目标构建期间不可变的环境信息"""

    target: str
    script_root: Path
    jobs: int
    env: Mapping[str, str]
    python_executable: str

    @property
    def search_path(self) -> str:
        return self.env.get("PATH", "")

    def with_ruby(self, config: Config) -> BuildContext:
        """叠加 Ruby/gem 环境（fpm 与部分目标需要），未配置时原样返回"""
        env = dict(self.env)
        if config.ruby_bin_dir:
            _prepend_path(env, config.ruby_bin_dir)
        if config.gem_home:
            env["GEM_HOME"] = config.gem_home
            _prepend_path(env, str(Path(config.gem_home) / "bin"))
        if config.gem_path:
            env["GEM_PATH"] = config.gem_path
        return replace(self, env=MappingProxyType(env))

    @classmethod
    def create(
        cls,
        target: str,
        config: Config,
        paths: PathCalculator,
        *,
        base_env: Mapping[str, str] | None = None,
        cpu_count: int | None = None,
    ) -> BuildContext:
        """为目标构造上下文

        非引导目标使用本地已构建的 clang：设置 CC/CXX，并把其 bin 目录放到 PATH 最前。
        因此清单中必须有编译器包的条目，缺失时抛 MissingFieldError。
        """
        env = dict(os.environ if base_env is None else base_env)
        if target not in config.bootstrap_targets:
            compiler = config.compiler_package
            cc = paths.local_path(compiler, "bin", "clang")
            cxx = paths.local_path(compiler, "bin", "clang++")
            env["CC"] = str(cc)
            env["CXX"] = str(cxx)
            _prepend_path(env, str(cc.parent))
            logger.info("使用本地 clang: CC=%s CXX=%s", cc, cxx)

        python = shutil.which("python3", path=env.get("PATH")) or sys.executable
        ctx = cls(
            target=target,
            script_root=config.root,
            jobs=detect_jobs(cpu_count),
            env=MappingProxyType(env),
            python_executable=python,
        )
        if target in config.ruby_targets:
            ctx = ctx.with_ruby(config)
        return ctx
