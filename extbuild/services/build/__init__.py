"""构建服务模块

- executor.py: 构建步骤执行与重试
"""

from extbuild.services.build.executor import BuildExecutor

__all__ = ["BuildExecutor"]
