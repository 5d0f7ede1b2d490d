"""PathCalculator 名称与路径计算测试"""

from __future__ import annotations

import pytest

from extbuild.core.config import Config
from extbuild.core.exceptions import MissingFieldError
from extbuild.core.identity import PathCalculator
from extbuild.core.models import TargetPlatform


@pytest.fixture()
def paths(write_manifest, entry, config, rpm_target) -> PathCalculator:
    mf = write_manifest({
        "X": entry(),
        "zeromq4-1": entry(version_string="4.1.8", consortium_build_number="1",
                           package_revision="2"),
        "broken": {"version_string": "1.0"},
    })
    return PathCalculator(mf, config, rpm_target)


class TestNames:
    def test_canonical_name(self, paths) -> None:
        assert paths.canonical_name("X") == "irods-externals-X1.0.0-2"

    def test_canonical_name_deterministic(self, paths) -> None:
        assert paths.canonical_name("X") == paths.canonical_name("X")

    def test_local_path_name(self, paths) -> None:
        assert paths.local_path_name("zeromq4-1") == "zeromq4-14.1.8-1"

    def test_missing_build_number_fatal(self, paths) -> None:
        with pytest.raises(MissingFieldError, match="consortium_build_number"):
            paths.canonical_name("broken")

    def test_package_variable(self) -> None:
        assert PathCalculator.package_variable("zeromq4-1") == "ZEROMQ4_1_PACKAGE"
        assert PathCalculator.package_variable("clang-runtime") == "CLANG_RUNTIME_PACKAGE"


class TestPaths:
    def test_source_dir(self, paths, tmp_path) -> None:
        assert paths.source_dir("X") == tmp_path.resolve() / "X1.0.0-2_src"

    def test_install_prefix(self, paths, tmp_path) -> None:
        expected = tmp_path.resolve() / "X1.0.0-2_src" / "opt/irods-externals" / "X1.0.0-2"
        assert paths.install_prefix("X") == expected

    def test_local_path_extra(self, paths) -> None:
        assert paths.local_path("X", "bin", "cmake") == paths.install_prefix("X") / "bin" / "cmake"

    def test_runtime_lib_path_uses_deploy_root(self, paths) -> None:
        assert paths.runtime_lib_path("X") == "/opt/irods-externals/X1.0.0-2/lib"
        assert not paths.runtime_lib_path("X").startswith(str(paths.source_dir("X")))

    def test_staged_path(self, paths) -> None:
        assert paths.staged_path("X", "lib") == "opt/irods-externals/X1.0.0-2/lib"


class TestArtifact:
    def test_rpm_filename(self, paths) -> None:
        assert paths.artifact_revision("zeromq4-1") == "2.el8"
        assert paths.artifact_filename("zeromq4-1") == (
            "irods-externals-zeromq4-14.1.8-1-1.0-2.el8.x86_64.rpm"
        )

    def test_default_revision(self, paths) -> None:
        assert paths.artifact_revision("X") == "0.el8"

    def test_rpm_major_version_only(self, write_manifest, entry, config) -> None:
        target = TargetPlatform("rhel", "8.10", "rpm", "x86_64")
        p = PathCalculator(write_manifest({"X": entry()}), config, target)
        assert p.artifact_revision("X") == "0.el8"

    def test_deb_filename(self, write_manifest, entry, tmp_path) -> None:
        cfg = Config(script_root=str(tmp_path), target_distro="ubuntu",
                     target_distro_version="22", distro_codename="jammy")
        target = TargetPlatform.from_config(cfg, machine="x86_64")
        p = PathCalculator(write_manifest({"X": entry(package_revision="3")}), cfg, target)
        assert p.artifact_filename("X") == "irods-externals-X1.0.0-2_1.0-3~jammy_amd64.deb"

    def test_deb_without_codename(self, write_manifest, entry, tmp_path) -> None:
        cfg = Config(script_root=str(tmp_path), target_distro="ubuntu",
                     target_distro_version="22.04")
        target = TargetPlatform.from_config(cfg, machine="aarch64")
        p = PathCalculator(write_manifest({"X": entry()}), cfg, target)
        assert p.artifact_revision("X") == "0~ubuntu22"
        assert p.artifact_filename("X").endswith("_arm64.deb")

    def test_custom_prefix(self, write_manifest, entry, tmp_path, rpm_target) -> None:
        cfg = Config(script_root=str(tmp_path), namespace_prefix="acme-ext",
                     final_install_root="/opt/acme/")
        p = PathCalculator(write_manifest({"X": entry()}), cfg, rpm_target)
        assert p.canonical_name("X") == "acme-ext-X1.0.0-2"
        assert p.runtime_lib_path("X") == "/opt/acme/X1.0.0-2/lib"
