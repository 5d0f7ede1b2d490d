"""运行期依赖解析

发行版原生依赖在前，清单内依赖（解析为规范包名）在后，各组保持清单顺序。
两组之间不去重：同名依赖出现两次时原样保留。
"""

from __future__ import annotations

import logging

from extbuild.core.identity import PathCalculator
from extbuild.core.manifest import Manifest
from extbuild.core.models import TargetPlatform

logger = logging.getLogger(__name__)


class DependencyResolver:
    """计算单个包的依赖声明列表"""

    def __init__(self, manifest: Manifest, paths: PathCalculator, target: TargetPlatform) -> None:
        self.manifest = manifest
        self.paths = paths
        self.target = target

    def distro_dependencies(self, pkg: str) -> list[str]:
        """distro_dependencies[发行版][版本]，缺失返回空列表"""
        table = self.manifest.get_optional(pkg, "distro_dependencies", {})
        by_version = table.get(self.target.distro) or {}
        return [str(d) for d in by_version.get(self.target.distro_version) or []]

    def interdependencies(self, pkg: str) -> list[str]:
        """清单内依赖的规范包名，依赖缺少版本信息时抛 MissingFieldError"""
        names = self.manifest.get_optional(pkg, "interdependencies", [])
        return [self.paths.canonical_name(n) for n in names if n]

    def resolve(self, pkg: str) -> list[str]:
        deps = self.distro_dependencies(pkg) + self.interdependencies(pkg)
        logger.debug("依赖 %s: %s", pkg, deps)
        return deps
