"""单目标构建编排

流程（严格顺序，单线程）:
  读取清单条目 → 计算路径与依赖 → 获取源码（幂等） → 补丁
  → 展开并校验构建步骤 → 依次执行 → 打包（可选）

任何致命错误以异常形式向上抛出，由 CLI 统一转换为退出码 1。
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Mapping

from extbuild.core.config import Config
from extbuild.core.context import BuildContext
from extbuild.core.deps import DependencyResolver
from extbuild.core.exceptions import TemplateError
from extbuild.core.identity import PathCalculator
from extbuild.core.manifest import Manifest
from extbuild.core.models import BuildReport, PackageSpec, SourceLayout, TargetPlatform
from extbuild.core.template import TemplateValues, find_unresolved
from extbuild.services.build.executor import BuildExecutor
from extbuild.services.packager import Packager
from extbuild.services.source import PatchStage, select_strategy
from extbuild.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class Orchestrator:
    """单目标构建编排器"""

    def __init__(
        self,
        manifest: Manifest,
        config: Config,
        target: TargetPlatform | None = None,
        *,
        executor: CommandExecutor | None = None,
        sleep: Callable[[float], None] = time.sleep,
        base_env: Mapping[str, str] | None = None,
        cpu_count: int | None = None,
    ) -> None:
        self.manifest = manifest
        self.config = config
        self.target = target or TargetPlatform.from_config(config)
        self.executor = executor
        self.base_env = base_env
        self.cpu_count = cpu_count

        self.paths = PathCalculator(manifest, config, self.target)
        self.deps = DependencyResolver(manifest, self.paths, self.target)
        self.patches = PatchStage(config.patches_path, executor)
        self.builder = BuildExecutor(
            retries=config.step_retries, retry_delay=config.retry_delay,
            executor=executor, sleep=sleep,
        )
        self.packager = Packager(config, self.paths, self.deps, executor)

    def required_tools(self, pkg: str) -> list[str]:
        """本次构建实际会用到的外部工具"""
        spec = self.manifest.spec(pkg)
        tools: list[str] = []
        strategy = select_strategy(spec)
        work = strategy.work_dir(spec, self.paths.source_dir(pkg))
        if spec.source_layout is not SourceLayout.NONE and not work.exists():
            tools.append("git")
        if spec.patches:
            tools.append("patch")
        return tools

    def context_for(self, pkg: str) -> BuildContext:
        return BuildContext.create(
            pkg, self.config, self.paths,
            base_env=self.base_env, cpu_count=self.cpu_count,
        )

    def expand_steps(self, spec: PackageSpec, ctx: BuildContext) -> list[str]:
        """展开全部构建步骤并检查残留占位符"""
        values = TemplateValues(spec.name, self.paths, ctx, self.config)
        expanded = [values.expand(s) for s in spec.all_build_steps if s]

        leftovers: list[str] = []
        for step in expanded:
            leftovers += [t for t in find_unresolved(step) if t not in leftovers]
        if leftovers:
            msg = f"{spec.name} 的构建步骤含未识别的占位符: {', '.join(leftovers)}"
            if self.config.strict_templates:
                raise TemplateError(msg, tokens=leftovers)
            logger.warning(msg)
        return expanded

    def build(self, pkg: str, *, package: bool = True) -> BuildReport:
        logger.info("--- 构建 [%s] ---", pkg)
        spec = self.manifest.spec(pkg)

        install_prefix = self.paths.install_prefix(pkg)
        logger.info("安装前缀: %s", install_prefix)
        install_prefix.mkdir(parents=True, exist_ok=True)

        ctx = self.context_for(pkg)

        source_dir = self.paths.source_dir(pkg)
        acquired = select_strategy(spec, self.executor).acquire(spec, source_dir, ctx)
        self.patches.apply(spec, acquired.work_dir, ctx)
        logger.info(
            "构建目录: %s (策略=%s, %s)", acquired.work_dir, acquired.strategy,
            "新获取" if acquired.fetched else "复用已有源码",
        )

        steps = self.expand_steps(spec, ctx)
        report = BuildReport(
            target=pkg,
            work_dir=str(acquired.work_dir),
            install_prefix=str(install_prefix),
        )
        report.steps = self.builder.run_all(steps, acquired.work_dir, ctx)

        if not package:
            logger.info("--- 构建 [%s] 完成（跳过打包） ---", pkg)
            return report

        outcome = self.packager.package(spec, ctx)
        report.artifact = str(outcome.artifact)
        report.packaged = True
        report.placeholder = outcome.placeholder
        logger.info("--- 构建 [%s] 完成 ---", pkg)
        return report
