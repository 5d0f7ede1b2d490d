"""身份与路径计算

由清单字段派生规范包名、本地源码/安装路径、运行期库路径和产物文件名。
所有结果都是 (包条目, 目标平台, 配置) 的纯函数，每次按需重新计算。

路径规则:
  local_path_name = <pkg><version_string>-<build_number>
  source_dir      = <script_root>/<local_path_name>_src
  install_prefix  = <source_dir>/<externals_root>/<local_path_name>
  rpath           = <final_install_root>/<local_path_name>/lib

构建期安装在源码树下，rpath 指向部署后的最终位置，两者刻意不同。
"""

from __future__ import annotations

from pathlib import Path

from extbuild.core.config import Config
from extbuild.core.manifest import Manifest
from extbuild.core.models import TargetPlatform

# 产物版本目前固定，不从清单派生
ARTIFACT_VERSION = "1.0"


class PathCalculator:
    """规范名称与路径计算器"""

    def __init__(self, manifest: Manifest, config: Config, target: TargetPlatform) -> None:
        self.manifest = manifest
        self.config = config
        self.target = target

    # ---- 名称 ----

    def local_path_name(self, pkg: str) -> str:
        version = self.manifest.get_str(pkg, "version_string")
        build = self.manifest.get_str(pkg, "consortium_build_number")
        return f"{pkg}{version}-{build}"

    def canonical_name(self, pkg: str) -> str:
        return f"{self.config.namespace_prefix}-{self.local_path_name(pkg)}"

    # ---- 构建期路径 ----

    def source_dir(self, pkg: str) -> Path:
        return self.config.root / f"{self.local_path_name(pkg)}_src"

    def install_prefix(self, pkg: str) -> Path:
        externals_root = self.manifest.get_str(pkg, "externals_root")
        return self.source_dir(pkg) / externals_root / self.local_path_name(pkg)

    def local_path(self, pkg: str, *extra: str) -> Path:
        """已构建依赖的安装路径，可追加子路径（如 "bin", "cmake"）"""
        return self.install_prefix(pkg).joinpath(*extra)

    def staged_path(self, pkg: str, directory: str) -> str:
        """待打包目录相对 source_dir 的路径"""
        externals_root = self.manifest.get_str(pkg, "externals_root")
        return f"{externals_root}/{self.local_path_name(pkg)}/{directory}"

    # ---- 运行期路径 ----

    def runtime_lib_path(self, pkg: str) -> str:
        root = self.config.final_install_root.rstrip("/")
        return f"{root}/{self.local_path_name(pkg)}/lib"

    # ---- 产物 ----

    def artifact_version(self, pkg: str) -> str:
        return ARTIFACT_VERSION

    def artifact_revision(self, pkg: str) -> str:
        """<package_revision> 加发行版后缀

        rpm: 0.el8
        deb: 0~jammy（未配置代号时为 0~ubuntu22）
        """
        rev = str(self.manifest.get_optional(pkg, "package_revision", "0"))
        if self.target.package_type == "deb":
            codename = self.target.codename or f"{self.target.distro}{self.target.major_version}"
            return f"{rev}~{codename}"
        return f"{rev}.el{self.target.major_version}"

    def artifact_filename(self, pkg: str) -> str:
        name = self.canonical_name(pkg)
        version = self.artifact_version(pkg)
        revision = self.artifact_revision(pkg)
        arch = self.target.architecture
        ext = self.target.extension
        if self.target.package_type == "deb":
            return f"{name}_{version}-{revision}_{arch}.{ext}"
        return f"{name}-{version}-{revision}.{arch}.{ext}"

    @staticmethod
    def package_variable(pkg: str) -> str:
        """packages.mk 中的变量名，如 zeromq4-1 → ZEROMQ4_1_PACKAGE"""
        return pkg.upper().replace("-", "_") + "_PACKAGE"
