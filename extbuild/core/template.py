"""构建步骤模板

构建步骤是带 TEMPLATE_* 占位符的 shell 命令字符串。占位符集合固定，
每个占位符对应一个带类型的槽位（任务数、安装前缀、依赖安装根、依赖 rpath ...）。

- CommandTemplate.parse 把字符串切分为字面量片段与槽位（长占位符优先匹配）
- render 单遍字面替换；不认识的 TEMPLATE_* 原样保留，替换本身从不失败
- find_unresolved 找出渲染后残留的 TEMPLATE_*，由调用方决定是否视为错误

槽位的值按需计算：只有步骤里出现的占位符才会去读清单。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from extbuild.core.config import Config
from extbuild.core.context import BuildContext
from extbuild.core.identity import PathCalculator


class SlotKind(str, Enum):
    JOBS = "jobs"
    SCRIPT_PATH = "script_path"
    INSTALL_PREFIX = "install_prefix"
    GCC_INSTALL_PREFIX = "gcc_install_prefix"
    PYTHON_EXECUTABLE = "python_executable"
    LOCAL_PATH = "local_path"      # 依赖安装根，可带子路径
    RPATH = "rpath"                # 依赖部署后的 lib 目录
    SUBDIRECTORY = "subdirectory"  # <pkg><version>-<build>


@dataclass(frozen=True)
class TokenSlot:
    """一个占位符及其取值规则"""

    token: str
    kind: SlotKind
    package: str = ""
    subpath: tuple[str, ...] = ()


def _slot(token: str, kind: SlotKind, package: str = "", *subpath: str) -> TokenSlot:
    return TokenSlot(f"TEMPLATE_{token}", kind, package, tuple(subpath))


# 固定占位符表（顺序即替换顺序）
TOKENS: tuple[TokenSlot, ...] = (
    _slot("JOBS", SlotKind.JOBS),
    _slot("SCRIPT_PATH", SlotKind.SCRIPT_PATH),
    _slot("INSTALL_PREFIX", SlotKind.INSTALL_PREFIX),
    _slot("GCC_INSTALL_PREFIX", SlotKind.GCC_INSTALL_PREFIX),
    _slot("CLANG_CPP_HEADERS", SlotKind.LOCAL_PATH, "clang", "include", "c++", "v1"),
    _slot("CLANG_CPP_LIBRARIES", SlotKind.LOCAL_PATH, "clang", "lib"),
    _slot("CLANG_SUBDIRECTORY", SlotKind.SUBDIRECTORY, "clang"),
    _slot("CLANG_EXECUTABLE", SlotKind.LOCAL_PATH, "clang", "bin", "clang"),
    _slot("CLANGPP_EXECUTABLE", SlotKind.LOCAL_PATH, "clang", "bin", "clang++"),
    _slot("CLANG_RUNTIME_RPATH", SlotKind.RPATH, "clang-runtime"),
    _slot("CMAKE_EXECUTABLE", SlotKind.LOCAL_PATH, "cmake", "bin", "cmake"),
    _slot("QPID_PROTON_SUBDIRECTORY", SlotKind.SUBDIRECTORY, "qpid-proton"),
    _slot("QPID_PROTON_LIBCXX_SUBDIRECTORY", SlotKind.SUBDIRECTORY, "qpid-proton-libcxx"),
    _slot("QPID_PROTON_RPATH", SlotKind.RPATH, "qpid-proton"),
    _slot("QPID_PROTON_LIBCXX_RPATH", SlotKind.RPATH, "qpid-proton-libcxx"),
    _slot("PYTHON_EXECUTABLE", SlotKind.PYTHON_EXECUTABLE),
    _slot("BOOST_ROOT", SlotKind.LOCAL_PATH, "boost"),
    _slot("BOOST_LIBCXX_ROOT", SlotKind.LOCAL_PATH, "boost-libcxx"),
    _slot("BOOST_RPATH", SlotKind.RPATH, "boost"),
    _slot("BOOST_LIBCXX_RPATH", SlotKind.RPATH, "boost-libcxx"),
    _slot("LIBARCHIVE_PATH", SlotKind.LOCAL_PATH, "libarchive"),
    _slot("LIBARCHIVE_RPATH", SlotKind.RPATH, "libarchive"),
    _slot("AVRO_RPATH", SlotKind.RPATH, "avro"),
    _slot("AVRO_PATH", SlotKind.LOCAL_PATH, "avro"),
    _slot("AVRO_LIBCXX_RPATH", SlotKind.RPATH, "avro-libcxx"),
    _slot("AVRO_LIBCXX_PATH", SlotKind.LOCAL_PATH, "avro-libcxx"),
    _slot("ZMQ_RPATH", SlotKind.RPATH, "zeromq4-1"),
    _slot("ZMQ_PATH", SlotKind.LOCAL_PATH, "zeromq4-1"),
    _slot("ZMQ_LIBCXX_RPATH", SlotKind.RPATH, "zeromq4-1-libcxx"),
    _slot("CPPZMQ_PATH", SlotKind.LOCAL_PATH, "cppzmq"),
    _slot("FMT_PATH", SlotKind.LOCAL_PATH, "fmt"),
    _slot("FMT_RPATH", SlotKind.RPATH, "fmt"),
    _slot("FMT_LIBCXX_PATH", SlotKind.LOCAL_PATH, "fmt-libcxx"),
    _slot("FMT_LIBCXX_RPATH", SlotKind.RPATH, "fmt-libcxx"),
    _slot("JSON_PATH", SlotKind.LOCAL_PATH, "json"),
)

TOKEN_SLOTS: dict[str, TokenSlot] = {s.token: s for s in TOKENS}

_TOKEN_RE = re.compile(
    "|".join(re.escape(t) for t in sorted(TOKEN_SLOTS, key=len, reverse=True))
)
_LEFTOVER_RE = re.compile(r"\bTEMPLATE_[A-Z0-9_]+\b")

Part = Union[str, TokenSlot]


@dataclass(frozen=True)
class CommandTemplate:
    """解析后的构建步骤：字面量片段与占位符槽位的有序序列"""

    parts: tuple[Part, ...]

    @classmethod
    def parse(cls, text: str) -> CommandTemplate:
        parts: list[Part] = []
        pos = 0
        for m in _TOKEN_RE.finditer(text):
            if m.start() > pos:
                parts.append(text[pos:m.start()])
            parts.append(TOKEN_SLOTS[m.group(0)])
            pos = m.end()
        if pos < len(text):
            parts.append(text[pos:])
        return cls(parts=tuple(parts))

    def render(self, resolve: Callable[[TokenSlot], str]) -> str:
        return "".join(p if isinstance(p, str) else resolve(p) for p in self.parts)


def find_unresolved(text: str) -> list[str]:
    """渲染后仍残留的 TEMPLATE_* 占位符（去重、保持出现顺序）"""
    seen: dict[str, None] = {}
    for m in _LEFTOVER_RE.finditer(text):
        seen.setdefault(m.group(0), None)
    return list(seen)


class TemplateValues:
    """占位符取值表，按需计算并缓存"""

    def __init__(
        self, target: str, paths: PathCalculator, ctx: BuildContext, config: Config,
    ) -> None:
        self.target = target
        self.paths = paths
        self.ctx = ctx
        self.config = config
        self._cache: dict[str, str] = {}

    def resolve(self, slot: TokenSlot) -> str:
        if slot.token not in self._cache:
            self._cache[slot.token] = self._compute(slot)
        return self._cache[slot.token]

    def _compute(self, slot: TokenSlot) -> str:
        kind = slot.kind
        if kind is SlotKind.JOBS:
            return str(self.ctx.jobs)
        if kind is SlotKind.SCRIPT_PATH:
            return str(self.ctx.script_root)
        if kind is SlotKind.INSTALL_PREFIX:
            return str(self.paths.install_prefix(self.target))
        if kind is SlotKind.GCC_INSTALL_PREFIX:
            return self.config.gcc_install_prefix
        if kind is SlotKind.PYTHON_EXECUTABLE:
            return self.ctx.python_executable
        if kind is SlotKind.LOCAL_PATH:
            return str(self.paths.local_path(slot.package, *slot.subpath))
        if kind is SlotKind.RPATH:
            return self.paths.runtime_lib_path(slot.package)
        return self.paths.local_path_name(slot.package)

    def expand(self, text: str) -> str:
        return CommandTemplate.parse(text).render(self.resolve)
