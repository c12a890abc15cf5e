"""核心数据模型单元测试"""

from __future__ import annotations

import dataclasses

import pytest

from recipekit.core.exceptions import BuildError, ValidationError
from recipekit.core.models import (
    DestinationCategory,
    InstalledFile,
    InstalledLayout,
    InstallMapping,
    PackageDescriptor,
    RunResult,
    Stage,
)


class TestDestinationCategory:
    @pytest.mark.parametrize("text, expected", [
        ("binary", DestinationCategory.BINARY),
        ("BINARY", DestinationCategory.BINARY),
        ("sharedResources", DestinationCategory.SHARED_RESOURCES),
        ("shared_resources", DestinationCategory.SHARED_RESOURCES),
        ("shared-resources", DestinationCategory.SHARED_RESOURCES),
    ])
    def test_parse(self, text, expected):
        assert DestinationCategory.parse(text) is expected

    def test_parse_unknown_raises(self):
        with pytest.raises(ValidationError, match="不支持的目标类别"):
            DestinationCategory.parse("library")


class TestPackageDescriptor:
    def test_immutable(self):
        d = PackageDescriptor(name="slang", version="1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            d.version = "2"  # type: ignore[misc]

    def test_revisions_are_distinct_instances(self):
        v1 = PackageDescriptor(name="slang", version="1")
        v2 = dataclasses.replace(v1, version="2")
        assert v1.key == ("slang", "1")
        assert v2.key == ("slang", "2")
        assert v1 != v2

    def test_label(self):
        assert PackageDescriptor(name="slang", version="1").label == "slang@1"
        assert PackageDescriptor(name="slang").label == "slang"

    def test_to_dict(self):
        d = PackageDescriptor(
            name="slang", version="2", source_url="https://example/slang.git",
            build_command="make", dependencies=frozenset({"go"}),
            install_mappings=(InstallMapping("bin/slang", DestinationCategory.BINARY),),
            build_environment="std",
        )
        data = d.to_dict()
        assert data["dependencies"] == ["go"]
        assert data["install"] == [{"source": "bin/slang", "category": "binary"}]
        assert data["build_environment"] == "std"


class TestInstalledLayout:
    def test_files_dedup_sorted(self):
        layout = InstalledLayout(prefix="/p", entries=[
            InstalledFile(DestinationCategory.BINARY, "b/tool", "/p/bin/tool"),
            InstalledFile(DestinationCategory.BINARY, "a/tool", "/p/bin/tool"),
            InstalledFile(DestinationCategory.BINARY, "a/aaa", "/p/bin/aaa"),
        ])
        assert layout.files == ["/p/bin/aaa", "/p/bin/tool"]


class TestRunResult:
    def test_failed_to_dict(self):
        d = PackageDescriptor(name="slang", version="1")
        cause = BuildError("构建失败", exit_code=1)
        r = RunResult(descriptor=d, status=Stage.FAILED, stage=Stage.BUILDING, cause=cause)
        data = r.to_dict()
        assert r.success is False
        assert data["package"] == "slang"
        assert data["version"] == "1"
        assert data["stage"] == "building"
        assert data["error_code"] == "BUILD_ERROR"
        assert "构建失败" in data["cause"]

    def test_installed_to_dict(self):
        d = PackageDescriptor(name="slang", version="1")
        r = RunResult(
            descriptor=d, status=Stage.INSTALLED,
            layout=InstalledLayout(prefix="/p"),
        )
        data = r.to_dict()
        assert r.success is True
        assert data["status"] == "installed"
        assert data["layout"] == {"prefix": "/p", "files": []}

    def test_terminal_stages(self):
        assert Stage.INSTALLED.terminal
        assert Stage.FAILED.terminal
        assert not Stage.BUILDING.terminal
