"""核心数据模型

清单条目 PackageSpec、目标平台 TargetPlatform 以及执行结果类型集中定义。
派生值（规范包名、路径、产物文件名等）不在此持久化，由 PathCalculator 按需计算。
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from extbuild.core.config import Config

# =========================================================================
# 清单模型
# =========================================================================


class SourceLayout(str, Enum):
    """源码布局：决定获取策略"""

    GENERIC = "generic"   # 通用 git 仓库
    SPECIAL = "special"   # 非标准布局（如编译器工具链 monorepo）
    NONE = "none"         # 无上游仓库，仅本地构建步骤


@dataclass
class PackageSpec:
    """单个外部依赖包的清单条目（必填字段已校验）"""

    name: str
    version_string: str
    build_number: str
    externals_root: str
    commitish: str
    license: str = "Unknown"
    patches: list[str] = field(default_factory=list)
    build_steps: list[str] = field(default_factory=list)
    external_build_steps: list[str] = field(default_factory=list)
    package_directories: list[str] = field(default_factory=list)
    uses_commit_tracking: bool = False
    source_repository: str = ""
    interdependencies: list[str] = field(default_factory=list)
    distro_dependencies: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    package_revision: str = "0"
    source_layout: SourceLayout = SourceLayout.GENERIC
    source_subdirectory: str = ""
    rpm_tags: list[str] = field(default_factory=list)

    @property
    def all_build_steps(self) -> list[str]:
        """build_steps 在前，external_build_steps 在后"""
        return [*self.build_steps, *self.external_build_steps]


# =========================================================================
# 目标平台
# =========================================================================

# 发行版族 → 打包格式
PACKAGE_TYPES: dict[str, str] = {
    "rhel": "rpm",
    "centos": "rpm",
    "almalinux": "rpm",
    "rocky": "rpm",
    "fedora": "rpm",
    "opensuse": "rpm",
    "debian": "deb",
    "ubuntu": "deb",
}

# Debian 系的架构命名与 uname 不同
DEB_ARCHITECTURES: dict[str, str] = {
    "x86_64": "amd64",
    "aarch64": "arm64",
    "ppc64le": "ppc64el",
}


@dataclass(frozen=True)
class TargetPlatform:
    """进程级固定的目标平台信息"""

    distro: str
    distro_version: str
    package_type: str
    architecture: str
    codename: str = ""

    @property
    def extension(self) -> str:
        return self.package_type

    @property
    def major_version(self) -> str:
        return self.distro_version.split(".", 1)[0]

    @classmethod
    def from_config(cls, cfg: Config, machine: str | None = None) -> TargetPlatform:
        """由配置和宿主机信息构造目标平台"""
        distro = cfg.target_distro.lower()
        package_type = cfg.package_type or PACKAGE_TYPES.get(distro, "rpm")
        arch = machine or platform.machine()
        if package_type == "deb":
            arch = DEB_ARCHITECTURES.get(arch, arch)
        return cls(
            distro=distro,
            distro_version=str(cfg.target_distro_version),
            package_type=package_type,
            architecture=arch,
            codename=cfg.distro_codename,
        )


# =========================================================================
# 执行结果
# =========================================================================


@dataclass
class StepResult:
    """单个构建步骤的执行结果"""

    command: str
    success: bool
    attempts: int = 1


@dataclass
class BuildReport:
    """单个目标一次调用的结果汇总"""

    target: str
    work_dir: str = ""
    install_prefix: str = ""
    steps: list[StepResult] = field(default_factory=list)
    artifact: str = ""
    packaged: bool = False
    placeholder: bool = False
