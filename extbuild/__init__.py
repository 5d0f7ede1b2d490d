"""extbuild - 外部依赖源码构建与打包工具"""

__version__ = "0.1.0"
