"""源码获取模块

拆分说明:
- strategies.py: 四种获取策略（浅克隆 / 完整克隆后检出 / 特殊布局 / 无源码）
- patches.py: 补丁预检与应用
"""

from extbuild.services.source.patches import PatchStage
from extbuild.services.source.strategies import (
    AcquisitionResult,
    FullCloneThenCheckout,
    NoSource,
    ShallowClone,
    SourceStrategy,
    SpecialLayoutClone,
    select_strategy,
)

__all__ = [
    "AcquisitionResult",
    "FullCloneThenCheckout",
    "NoSource",
    "PatchStage",
    "ShallowClone",
    "SourceStrategy",
    "SpecialLayoutClone",
    "select_strategy",
]
