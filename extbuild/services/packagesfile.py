"""packages.mk 生成

为清单中每个包写一行 <VAR>_PACKAGE=<产物文件名>，
外部 Makefile 据此得知每个目标会产出哪个文件，而无需真正构建。
"""

from __future__ import annotations

import logging
from pathlib import Path

from extbuild.core.identity import PathCalculator
from extbuild.core.manifest import Manifest
from extbuild.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

HEADER = "# Auto-generated by extbuild"


def render_packages_file(manifest: Manifest, paths: PathCalculator) -> str:
    lines = [HEADER, ""]
    for pkg in manifest.packages():
        lines.append(f"{paths.package_variable(pkg)}={paths.artifact_filename(pkg)}")
    return "\n".join(lines) + "\n"


def generate_packages_file(manifest: Manifest, paths: PathCalculator, path: Path) -> Path:
    """生成映射文件，原子写入"""
    atomic_write(path, render_packages_file(manifest, paths))
    logger.info("已生成 %s (%d 个包)", path, len(manifest.packages()))
    return path
