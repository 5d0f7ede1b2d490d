"""清单访问器

所有组件经由 Manifest 读取 versions.json，不直接解析文件。

- get_field: 必填字段，缺失或 null 抛 MissingFieldError
- get_optional: 可选字段，缺失或 null 返回默认值
- packages: 列出全部包名（排除保留的 comment 键）
- spec: 构造已校验必填字段的 PackageSpec
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from extbuild.core.exceptions import ConfigError, MissingFieldError
from extbuild.core.models import PackageSpec, SourceLayout

logger = logging.getLogger(__name__)

# 保留键：自由格式注释，不是包
COMMENT_KEY = "comment"

REQUIRED_FIELDS = (
    "version_string",
    "consortium_build_number",
    "externals_root",
    "commitish",
)

_MISSING = object()


class Manifest:
    """只读清单，每次调用加载一次"""

    def __init__(
        self,
        data: dict[str, Any],
        *,
        source: str = "<memory>",
        default_repository: str = "https://github.com/irods/{name}",
    ) -> None:
        self._data = data
        self.source = source
        self.default_repository = default_repository

    @classmethod
    def load(cls, path: str | Path, **kwargs: Any) -> Manifest:
        """从文件加载清单，文件缺失或内容不是映射时抛 ConfigError"""
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"清单文件不存在: {p}")
        try:
            with open(p, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise ConfigError(f"清单文件无法解析: {p} ({e})") from e
        if not isinstance(data, dict):
            raise ConfigError(f"清单文件内容不是映射: {p}")
        logger.debug("已加载清单 %s (%d 项)", p, len(data))
        return cls(data, source=str(p), **kwargs)

    # ---- 包级访问 ----

    def packages(self) -> list[str]:
        """全部包名（已排序，排除 comment 键）"""
        return sorted(k for k in self._data if k != COMMENT_KEY)

    def has_package(self, pkg: str) -> bool:
        return pkg != COMMENT_KEY and isinstance(self._data.get(pkg), dict)

    def require_package(self, pkg: str) -> dict[str, Any]:
        """返回包条目，不存在时抛 ConfigError 并列出可用目标"""
        if not self.has_package(pkg):
            raise ConfigError(
                f"构建目标 [{pkg}] 不在清单 {self.source} 中。"
                f"可用目标: {' '.join(self.packages())}"
            )
        return self._data[pkg]

    # ---- 字段级访问 ----

    def get_field(self, pkg: str, field: str) -> Any:
        """读取必填字段；包、字段缺失或值为 null 均视为致命配置错误"""
        if not self.has_package(pkg):
            raise MissingFieldError(pkg, field, "包不在清单中")
        value = self._data[pkg].get(field, _MISSING)
        if value is _MISSING:
            raise MissingFieldError(pkg, field)
        if value is None:
            raise MissingFieldError(pkg, field, "值为 null")
        return value

    def get_optional(self, pkg: str, field: str, default: Any = None) -> Any:
        """读取可选字段；缺失或 null 返回 default"""
        entry = self.require_package(pkg)
        value = entry.get(field)
        return default if value is None else value

    def get_str(self, pkg: str, field: str) -> str:
        """必填字段的字符串形式（清单里构建号可能写成数字）"""
        return str(self.get_field(pkg, field))

    # ---- 类型化条目 ----

    def spec(self, pkg: str) -> PackageSpec:
        """构造 PackageSpec，必填字段缺失时抛 MissingFieldError"""
        self.require_package(pkg)
        required = {f: self.get_str(pkg, f) for f in REQUIRED_FIELDS}

        layout_raw = self.get_optional(pkg, "source_layout", SourceLayout.GENERIC.value)
        try:
            layout = SourceLayout(layout_raw)
        except ValueError as e:
            raise ConfigError(
                f"'{pkg}' 的 source_layout 取值无效: {layout_raw} "
                f"(可选: {', '.join(m.value for m in SourceLayout)})"
            ) from e

        return PackageSpec(
            name=pkg,
            version_string=required["version_string"],
            build_number=required["consortium_build_number"],
            externals_root=required["externals_root"],
            commitish=required["commitish"],
            license=str(self.get_optional(pkg, "license", "Unknown")),
            patches=list(self.get_optional(pkg, "patches", [])),
            build_steps=list(self.get_optional(pkg, "build_steps", [])),
            external_build_steps=list(self.get_optional(pkg, "external_build_steps", [])),
            package_directories=list(self.get_optional(pkg, "fpm_directories", [])),
            uses_commit_tracking=bool(self.get_optional(pkg, "enable_sha", False)),
            source_repository=str(self.get_optional(
                pkg, "git_repository", self.default_repository.format(name=pkg),
            )),
            interdependencies=list(self.get_optional(pkg, "interdependencies", [])),
            distro_dependencies=dict(self.get_optional(pkg, "distro_dependencies", {})),
            package_revision=str(self.get_optional(pkg, "package_revision", "0")),
            source_layout=layout,
            source_subdirectory=str(self.get_optional(pkg, "source_subdirectory", pkg)),
            rpm_tags=list(self.get_optional(pkg, "rpm_tags", [])),
        )
