"""命令行端到端测试"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from extbuild.cli import main
from extbuild.utils.logger import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    manifest = {
        "comment": "test manifest",
        "clang": {
            "version_string": "13.0.1", "consortium_build_number": "0",
            "externals_root": "opt/irods-externals", "commitish": "13.0.1",
        },
        "hello": {
            "version_string": "1.0", "consortium_build_number": "1",
            "externals_root": "opt/irods-externals", "commitish": "main",
            "source_layout": "none",
            "build_steps": ["mkdir -p TEMPLATE_INSTALL_PREFIX/bin", "echo built > TEMPLATE_INSTALL_PREFIX/bin/marker"],
        },
    }
    (tmp_path / "versions.json").write_text(json.dumps(manifest), encoding="utf-8")
    cfg = {"script_root": str(tmp_path), "target_distro": "rhel", "target_distro_version": "8"}
    (tmp_path / "config.yml").write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return tmp_path


def _invoke(workspace: Path, *args: str):
    return CliRunner().invoke(main, ["-c", str(workspace / "config.yml"), *args])


class TestUsage:
    def test_no_target(self, workspace) -> None:
        result = _invoke(workspace)
        assert result.exit_code == 1
        assert "可用目标: clang hello" in result.output

    def test_two_targets(self, workspace) -> None:
        assert _invoke(workspace, "hello", "clang").exit_code == 1

    def test_unknown_target(self, workspace) -> None:
        result = _invoke(workspace, "nope")
        assert result.exit_code == 1
        assert "nope" in result.output

    def test_missing_manifest(self, workspace) -> None:
        result = _invoke(workspace, "-m", "missing.json", "hello")
        assert result.exit_code == 1
        assert "错误" in result.output

    def test_malformed_config(self, workspace) -> None:
        bad = workspace / "bad.yml"
        bad.write_text("bootstrap_targets: [clang, cmake\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["-c", str(bad), "hello"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "配置文件无法解析" in result.output


class TestVerbosity:
    @pytest.mark.parametrize("flags, level", [
        ([], logging.INFO),
        (["-q"], logging.WARNING),
        (["-v"], logging.DEBUG),
        (["-vv"], logging.DEBUG),
    ])
    def test_log_level(self, workspace, monkeypatch, flags, level) -> None:
        monkeypatch.delenv("EXTBUILD_LOG_LEVEL", raising=False)
        result = _invoke(workspace, *flags, "--no-package", "hello")
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == level


class TestTargets:
    def test_packagesfile(self, workspace) -> None:
        result = _invoke(workspace, "packagesfile")
        assert result.exit_code == 0, result.output
        text = (workspace / "packages.mk").read_text(encoding="utf-8")
        assert "HELLO_PACKAGE=irods-externals-hello1.0-1-1.0-0.el8." in text
        assert "COMMENT_PACKAGE" not in text
        assert not (workspace / "hello1.0-1_src").exists()

    def test_build_without_packaging(self, workspace) -> None:
        result = _invoke(workspace, "-q", "--no-package", "hello")
        assert result.exit_code == 0, result.output
        marker = workspace / "hello1.0-1_src" / "opt/irods-externals/hello1.0-1/bin/marker"
        assert marker.read_text().strip() == "built"
        assert "构建完成: hello (2 步)" in result.output

    def test_build_with_placeholder_artifact(self, workspace) -> None:
        result = _invoke(workspace, "-q", "-p", "hello")
        assert result.exit_code == 0, result.output
        # bin 不在 fpm_directories 中，打包阶段只产出空文件
        artifacts = list(workspace.glob("irods-externals-hello1.0-1-1.0-0.el8.*.rpm"))
        assert len(artifacts) == 1
        assert "空产物" in result.output

    def test_missing_field_is_fatal(self, workspace) -> None:
        path = workspace / "versions.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        data["broken"] = {
            "version_string": "1.0", "externals_root": "opt/irods-externals", "commitish": "main",
        }
        path.write_text(json.dumps(data), encoding="utf-8")
        result = _invoke(workspace, "broken")
        assert result.exit_code == 1
        assert "consortium_build_number" in result.output
