"""集中配置管理

所有路径、命名前缀、目标发行版与打包元信息集中在 Config 中，
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from extbuild.core.exceptions import ConfigError
from extbuild.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """全局配置"""

    # 目录
    script_root: str = "."
    manifest: str = "versions.json"
    patches_dir: str = "patches"
    packages_file: str = "packages.mk"

    # 命名
    namespace_prefix: str = "irods-externals"
    final_install_root: str = "/opt/irods-externals"
    default_repository: str = "https://github.com/irods/{name}"

    # 目标平台
    target_distro: str = "rhel"
    target_distro_version: str = "8"
    distro_codename: str = ""
    package_type: str = ""  # 为空时按发行版族推断

    # 打包元信息
    maintainer: str = "<packages@irods.org>"
    vendor: str = "iRODS Consortium"
    url: str = "https://irods.org"
    description_prefix: str = "iRODS Build Dependency"
    fpm_version: str = "1.14.1"

    # 编译器工具链
    bootstrap_targets: list[str] = field(default_factory=lambda: ["clang", "cmake"])
    compiler_package: str = "clang"
    gcc_install_prefix: str = ""

    # Ruby / gem 环境（fpm 及部分目标需要）
    ruby_targets: list[str] = field(default_factory=lambda: ["boost", "boost-libcxx"])
    ruby_bin_dir: str = ""
    gem_home: str = ""
    gem_path: str = ""

    # 执行
    step_retries: int = 0
    retry_delay: float = 1.0
    strict_templates: bool = True

    # 自定义扩展
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认

        文件无法读取或 YAML 格式错误时抛 ConfigError。
        """
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ConfigError(f"配置文件无法解析: {path} ({e})") from e
        if not data:
            logger.info("配置 %s 不存在或为空，使用默认值", path)
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        logger.info("配置已加载: %s", path)
        return cfg

    @property
    def root(self) -> Path:
        return Path(self.script_root).resolve()

    @property
    def manifest_path(self) -> Path:
        p = Path(self.manifest)
        return p if p.is_absolute() else self.root / p

    @property
    def patches_path(self) -> Path:
        p = Path(self.patches_dir)
        return p if p.is_absolute() else self.root / p
