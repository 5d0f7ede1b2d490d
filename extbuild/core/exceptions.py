"""统一异常体系

所有业务异常继承 ExtbuildError。CLI 层捕获后输出提示并以退出码 1 结束，
任何致命错误都不做聚合或部分成功处理。
"""

from __future__ import annotations


class ExtbuildError(Exception):
    """构建工具基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(ExtbuildError):
    """配置或清单缺失、内容无效、目标不存在"""

    code = "CONFIG_ERROR"


class MissingFieldError(ConfigError):
    """清单中必填字段缺失或为 null"""

    code = "MISSING_FIELD"

    def __init__(self, package: str, field: str, reason: str = "") -> None:
        msg = f"清单字段缺失: '{package}' 的 '{field}'"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
        self.package = package
        self.field = field


class TemplateError(ExtbuildError):
    """构建步骤中存在未解析的占位符"""

    code = "TEMPLATE_ERROR"

    def __init__(self, message: str, tokens: list[str] | None = None) -> None:
        super().__init__(message)
        self.tokens = tokens or []


class AcquisitionError(ExtbuildError):
    """源码 clone / checkout 失败"""

    code = "ACQUISITION_ERROR"


class PatchError(ExtbuildError):
    """补丁预检或应用失败"""

    code = "PATCH_ERROR"


class BuildStepError(ExtbuildError):
    """构建步骤在重试耗尽后仍然失败"""

    code = "BUILD_STEP_ERROR"

    def __init__(self, message: str, step: str = "", attempts: int = 0) -> None:
        super().__init__(message)
        self.step = step
        self.attempts = attempts


class PackagingError(ExtbuildError):
    """打包工具缺失或返回非零退出码"""

    code = "PACKAGING_ERROR"
