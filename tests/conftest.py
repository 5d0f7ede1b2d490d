"""公共测试夹具：记录型命令执行器、临时清单与配置"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest

from extbuild.core.config import Config
from extbuild.core.manifest import Manifest
from extbuild.core.models import TargetPlatform
from extbuild.utils.shell import CommandResult


@dataclass
class Call:
    cmd: str | list[str]
    cwd: str
    env: dict[str, str] = field(default_factory=dict)


class RecordingExecutor:
    """记录所有命令；handler 返回退出码或 CommandResult，默认全部成功"""

    def __init__(self, handler: Callable[[Any, str], Any] | None = None) -> None:
        self.calls: list[Call] = []
        self.handler = handler

    def execute(self, cmd, *, cwd=".", env=None, capture=False) -> CommandResult:
        self.calls.append(Call(cmd=cmd, cwd=cwd, env=dict(env or {})))
        if self.handler is None:
            return CommandResult(returncode=0)
        rc = self.handler(cmd, cwd)
        if isinstance(rc, CommandResult):
            return rc
        return CommandResult(returncode=rc or 0)

    @property
    def commands(self) -> list[str | list[str]]:
        return [c.cmd for c in self.calls]

    def git_calls(self) -> list[list[str]]:
        return [c.cmd for c in self.calls if isinstance(c.cmd, list) and c.cmd[0] == "git"]


def _fake_git(cmd, cwd: str) -> int:
    """模拟 git clone：在 cwd 下创建目标目录"""
    if isinstance(cmd, list) and cmd[:2] == ["git", "clone"]:
        (Path(cwd) / cmd[-1]).mkdir(parents=True, exist_ok=True)
    return 0


def _package_entry(**overrides: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "version_string": "1.0.0",
        "consortium_build_number": "2",
        "externals_root": "opt/irods-externals",
        "commitish": "v1.0.0",
    }
    entry.update(overrides)
    return entry


@pytest.fixture()
def recorder() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(script_root=str(tmp_path), retry_delay=0.0)


@pytest.fixture()
def rpm_target() -> TargetPlatform:
    return TargetPlatform(
        distro="rhel", distro_version="8", package_type="rpm", architecture="x86_64",
    )


@pytest.fixture()
def write_manifest(tmp_path: Path) -> Callable[[dict], Manifest]:
    """把字典写成 versions.json 并加载"""

    def _write(data: dict) -> Manifest:
        path = tmp_path / "versions.json"
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return Manifest.load(path)

    return _write


@pytest.fixture()
def entry() -> Callable[..., dict[str, Any]]:
    """生成清单条目（必填字段齐全），关键字参数覆盖"""
    return _package_entry


@pytest.fixture()
def git_recorder() -> RecordingExecutor:
    """clone 时创建目标目录的记录型执行器"""
    return RecordingExecutor(handler=_fake_git)
