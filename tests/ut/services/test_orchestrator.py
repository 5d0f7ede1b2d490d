"""单目标构建编排测试"""

from __future__ import annotations

import pytest

from extbuild.core.config import Config
from extbuild.core.exceptions import BuildStepError, ConfigError, TemplateError
from extbuild.services.orchestrator import Orchestrator
from extbuild.utils.shell import LocalExecutor

BASE_ENV = {"PATH": "/usr/bin:/bin"}


@pytest.fixture()
def manifest(write_manifest, entry):
    return write_manifest({
        "clang": entry(version_string="13.0.1", consortium_build_number="0"),
        "X": entry(
            source_layout="none",
            build_steps=[
                "mkdir -p TEMPLATE_INSTALL_PREFIX/lib",
                "echo TEMPLATE_JOBS > TEMPLATE_INSTALL_PREFIX/lib/jobs.txt",
            ],
        ),
        "Y": entry(build_steps=["make -jTEMPLATE_JOBS"], git_repository="https://example.com/y"),
        "Z": entry(source_layout="none", build_steps=["echo TEMPLATE_UNKNOWN_THING"]),
    })


def _orch(manifest, config, target, executor) -> Orchestrator:
    return Orchestrator(
        manifest, config, target, executor=executor,
        sleep=lambda s: None, base_env=BASE_ENV, cpu_count=4,
    )


class TestBuild:
    def test_end_to_end_real_shell(self, manifest, config, rpm_target) -> None:
        orch = _orch(manifest, config, rpm_target, LocalExecutor())
        report = orch.build("X", package=False)

        prefix = orch.paths.install_prefix("X")
        assert report.install_prefix == str(prefix)
        assert (prefix / "lib" / "jobs.txt").read_text().strip() == "3"
        assert orch.paths.source_dir("X").is_dir()
        assert [s.success for s in report.steps] == [True, True]
        assert not report.packaged

    def test_placeholder_when_nothing_staged(self, manifest, config, rpm_target, recorder) -> None:
        orch = _orch(manifest, config, rpm_target, recorder)
        report = orch.build("X")
        assert report.packaged and report.placeholder
        assert report.artifact.endswith("irods-externals-X1.0.0-2-1.0-0.el8.x86_64.rpm")
        assert recorder.commands[0] == f"mkdir -p {orch.paths.install_prefix('X')}/lib"

    def test_clone_then_expanded_steps(self, manifest, config, rpm_target, git_recorder) -> None:
        orch = _orch(manifest, config, rpm_target, git_recorder)
        report = orch.build("Y", package=False)
        assert git_recorder.git_calls()[0][:2] == ["git", "clone"]
        assert git_recorder.commands[-1] == "make -j3"
        assert git_recorder.calls[-1].cwd == report.work_dir
        assert git_recorder.calls[-1].env["CC"].endswith("clang13.0.1-0/bin/clang")

    def test_second_build_skips_clone(self, manifest, config, rpm_target, git_recorder) -> None:
        orch = _orch(manifest, config, rpm_target, git_recorder)
        orch.build("Y", package=False)
        orch.build("Y", package=False)
        assert len(git_recorder.git_calls()) == 1

    def test_step_failure_propagates(self, manifest, config, rpm_target, recorder) -> None:
        recorder.handler = lambda cmd, cwd: 1
        with pytest.raises(BuildStepError):
            _orch(manifest, config, rpm_target, recorder).build("X")

    def test_unknown_package(self, manifest, config, rpm_target, recorder) -> None:
        with pytest.raises(ConfigError, match="可用目标"):
            _orch(manifest, config, rpm_target, recorder).build("nope")


class TestTemplateCheck:
    def test_strict_rejects_leftovers(self, manifest, config, rpm_target, recorder) -> None:
        with pytest.raises(TemplateError) as exc:
            _orch(manifest, config, rpm_target, recorder).build("Z")
        assert exc.value.tokens == ["TEMPLATE_UNKNOWN_THING"]
        assert recorder.calls == []

    def test_lenient_runs_verbatim(self, manifest, rpm_target, recorder, tmp_path) -> None:
        cfg = Config(script_root=str(tmp_path), strict_templates=False)
        _orch(manifest, cfg, rpm_target, recorder).build("Z", package=False)
        assert recorder.commands == ["echo TEMPLATE_UNKNOWN_THING"]


class TestRequiredTools:
    def test_git_only_when_source_missing(self, manifest, config, rpm_target, git_recorder) -> None:
        orch = _orch(manifest, config, rpm_target, git_recorder)
        assert orch.required_tools("Y") == ["git"]
        orch.build("Y", package=False)
        assert orch.required_tools("Y") == []

    def test_no_source_needs_nothing(self, manifest, config, rpm_target, recorder) -> None:
        assert _orch(manifest, config, rpm_target, recorder).required_tools("X") == []
