"""BuildExecutor 单元测试"""

from __future__ import annotations

import pytest

from recipekit.core.exceptions import BuildError, StageTimeoutError
from recipekit.core.models import PackageDescriptor
from recipekit.services.build import BuildExecutor
from recipekit.services.build.executor import BUILD_ENV_VAR
from recipekit.services.fetch import SourceTree


@pytest.fixture()
def tree(tmp_path) -> SourceTree:
    path = tmp_path / "tree"
    path.mkdir()
    return SourceTree(root=path, path=path)


class TestBuildExecutor:
    """构建执行测试"""

    def test_runs_in_tree(self, tree):
        d = PackageDescriptor(name="slang", build_command="mkdir -p bin && touch bin/slang")
        BuildExecutor().build(tree, d)
        assert (tree.path / "bin" / "slang").is_file()

    def test_nonzero_exit_raises(self, tree):
        d = PackageDescriptor(name="slang", build_command="echo compiling; echo boom >&2; exit 1")
        with pytest.raises(BuildError) as exc_info:
            BuildExecutor().build(tree, d)
        err = exc_info.value
        assert err.exit_code == 1
        assert "compiling" in err.output
        assert "boom" in err.output
        assert err.code == "BUILD_ERROR"

    def test_timeout(self, tree):
        d = PackageDescriptor(name="slang", build_command="exec sleep 5")
        with pytest.raises(StageTimeoutError) as exc_info:
            BuildExecutor().build(tree, d, timeout=0.3)
        assert exc_info.value.stage == "building"

    def test_build_environment_passed_through(self, tree):
        d = PackageDescriptor(
            name="slang", build_environment="std",
            build_command=f'printf "%s:%s" "${BUILD_ENV_VAR}" "$CGO_ENABLED" > env.txt',
        )
        BuildExecutor(environments={"std": {"CGO_ENABLED": "1"}}).build(tree, d)
        assert (tree.path / "env.txt").read_text(encoding="utf-8") == "std:1"

    def test_unknown_environment_label_still_passed(self, tree):
        d = PackageDescriptor(
            name="slang", build_environment="superenv",
            build_command=f'printf "%s" "${BUILD_ENV_VAR}" > env.txt',
        )
        BuildExecutor().build(tree, d)
        assert (tree.path / "env.txt").read_text(encoding="utf-8") == "superenv"

    def test_no_environment_label(self, tree):
        env = BuildExecutor().build_env(PackageDescriptor(name="slang"))
        assert BUILD_ENV_VAR not in env or env[BUILD_ENV_VAR] == ""

    def test_spawn_failure_is_build_error(self, tree):
        class Unstartable:
            def execute(self, cmd, *, cwd=".", env=None, timeout=None):
                raise FileNotFoundError(2, "No such file or directory", cmd[0])

        d = PackageDescriptor(name="slang", build_command="make")
        with pytest.raises(BuildError, match="无法启动构建") as exc_info:
            BuildExecutor(executor=Unstartable()).build(tree, d)
        assert exc_info.value.exit_code == 127
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
