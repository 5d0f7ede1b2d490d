"""extbuild 命令行接口

    extbuild [options] <target>

target 为清单中的包名，或保留值 packagesfile（生成 packages.mk，不构建）。
成功退出码 0；用法错误与任何致命错误退出码 1。
"""

from __future__ import annotations

import logging
import os

import click

from extbuild import __version__
from extbuild.core.config import Config
from extbuild.core.exceptions import ConfigError, ExtbuildError
from extbuild.core.manifest import Manifest
from extbuild.services.orchestrator import Orchestrator
from extbuild.services.packagesfile import generate_packages_file
from extbuild.utils.logger import level_for_verbosity, setup_logging
from extbuild.utils.shell import require_tool

logger = logging.getLogger(__name__)

PACKAGES_FILE_TARGET = "packagesfile"


def _available_targets(manifest: Manifest | None) -> str:
    if manifest is None:
        return ""
    return " ".join(manifest.packages())


def _usage(ctx: click.Context, manifest: Manifest | None) -> None:
    click.echo(ctx.get_usage(), err=True)
    targets = _available_targets(manifest)
    if targets:
        click.echo(f"可用目标: {targets}", err=True)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option("-v", "--verbose", count=True, help="提高日志详细程度（可重复）")
@click.option("-q", "--quiet", is_flag=True, help="仅输出警告和错误")
@click.option("--package/--no-package", "-p/-n", default=True, help="构建后是否打包（默认打包）")
@click.option("--config", "-c", "config_path", default="configs/default.yml", help="配置文件路径")
@click.option("--manifest", "-m", default="", help="清单文件路径（覆盖配置）")
@click.argument("targets", nargs=-1)
@click.pass_context
def main(
    ctx: click.Context, verbose: int, quiet: bool, package: bool,
    config_path: str, manifest: str, targets: tuple[str, ...],
) -> None:
    """从源码构建单个外部依赖并打包"""
    if quiet:
        level = level_for_verbosity(0)
    elif verbose:
        level = level_for_verbosity(1 + verbose)
    else:
        level = os.getenv("EXTBUILD_LOG_LEVEL", "INFO")
    setup_logging(level=level, json_output=os.getenv("EXTBUILD_LOG_JSON", "") == "1")

    try:
        cfg = Config.from_file(config_path)
        if manifest:
            cfg.manifest = manifest
        mf = Manifest.load(cfg.manifest_path, default_repository=cfg.default_repository)
    except ExtbuildError as e:
        logger.error("%s", e)
        click.echo(f"错误: {e}", err=True)
        ctx.exit(1)

    if len(targets) != 1:
        click.echo("错误: 参数数量不正确，请只指定一个目标", err=True)
        _usage(ctx, mf)
        ctx.exit(1)

    target = targets[0]
    try:
        orch = Orchestrator(mf, cfg)
        if target == PACKAGES_FILE_TARGET:
            path = generate_packages_file(mf, orch.paths, cfg.root / cfg.packages_file)
            click.echo(f"已生成 {path}")
            return

        if not mf.has_package(target):
            raise ConfigError(
                f"构建目标 [{target}] 不在清单中。可用目标: {_available_targets(mf)}"
            )
        for tool in orch.required_tools(target):
            require_tool(tool)
        report = orch.build(target, package=package)
    except ExtbuildError as e:
        logger.error("%s", e)
        click.echo(f"错误: {e}", err=True)
        ctx.exit(1)

    click.echo(f"构建完成: {report.target} ({len(report.steps)} 步)")
    if report.artifact:
        kind = "空产物" if report.placeholder else "产物"
        click.echo(f"{kind}: {report.artifact}")
