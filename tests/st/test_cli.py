"""CLI 端到端测试（click CliRunner，本地源码，无网络）"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

import recipekit.cli as climod
import recipekit.core.config as cfgmod
from recipekit.cli import main
from recipekit.services.container import reset_container

SLANG_BUILD = "mkdir -p bin share/slang && printf slang > bin/slang && printf std > share/slang/std.sl"


@pytest.fixture()
def env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, source_dir: Path):
    """临时配置文件 + 只含 slang 的目录"""
    catalog = tmp_path / "catalog.yml"
    catalog.write_text(yaml.safe_dump({"formulae": {"slang": {
        "homepage": "https://github.com/bww/Slang",
        "versions": {
            "1": {
                "source_url": str(source_dir),
                "build_command": "exit 1",
                "install": [{"source": "slang", "category": "binary"}],
            },
            "2": {
                "source_url": str(source_dir),
                "build_command": SLANG_BUILD,
                "build_environment": "std",
                "dependencies": ["go"],
                "install": [
                    {"source": "bin/slang", "category": "binary"},
                    {"source": "share/slang", "category": "sharedResources"},
                ],
            },
        },
    }}}), encoding="utf-8")
    config = tmp_path / "config.yml"
    config.write_text(yaml.safe_dump({
        "catalog_file": str(catalog),
        "prefix": str(tmp_path / "prefix"),
        "work_dir": str(tmp_path / "work"),
    }), encoding="utf-8")

    logging_calls: list[tuple[str, bool]] = []
    monkeypatch.setattr(
        climod, "setup_logging",
        lambda level, json_output: logging_calls.append((level, json_output)),
    )
    monkeypatch.setattr(cfgmod, "_current", None)
    reset_container()
    yield {"config": str(config), "prefix": tmp_path / "prefix",
           "catalog": catalog, "logging": logging_calls}
    reset_container()


def _invoke(env, *args: str):
    return CliRunner().invoke(main, ["-c", env["config"], *args])


class TestCatalogCommands:
    def test_list(self, env):
        result = _invoke(env, "list")
        assert result.exit_code == 0
        assert "slang" in result.output
        assert "1, 2" in result.output

    def test_show_latest(self, env):
        result = _invoke(env, "show", "slang")
        assert result.exit_code == 0
        assert "slang@2" in result.output
        assert "share/slang -> shared_resources" in result.output
        assert "dependencies: go" in result.output

    def test_show_missing(self, env):
        result = _invoke(env, "show", "nope")
        assert result.exit_code == 1
        assert "描述符不存在" in result.output

    def test_add_and_remove(self, env):
        result = _invoke(
            env, "add", "tool", "--version", "0.1",
            "--source-url", "https://example.com/tool.git",
            "--build-command", "make",
            "--install", "bin/tool:binary",
            "--install", "share/tool:sharedResources",
        )
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(env["catalog"].read_text(encoding="utf-8"))
        entry = data["formulae"]["tool"]["versions"]["0.1"]
        assert entry["install"][1] == {"source": "share/tool", "category": "shared_resources"}

        assert _invoke(env, "remove", "tool", "--version", "0.1").exit_code == 0
        assert _invoke(env, "remove", "tool").exit_code == 1

    def test_add_bad_mapping(self, env):
        result = _invoke(env, "add", "tool", "--version", "1", "--install", "bin/tool:library")
        assert result.exit_code == 2
        assert "不支持的目标类别" in result.output

    def test_add_warns_on_incomplete(self, env):
        result = _invoke(env, "add", "draft", "--version", "1")
        assert result.exit_code == 0
        assert "警告: source_url" in result.output

    def test_import(self, env, tmp_path):
        other = tmp_path / "other.yml"
        other.write_text(yaml.safe_dump({"formulae": {"tool": {"versions": {"3": {
            "source_url": "https://example.com/tool.tar.gz",
            "build_command": "make",
            "install": [["tool", "binary"]],
        }}}}}), encoding="utf-8")
        result = _invoke(env, "import", str(other))
        assert result.exit_code == 0
        assert "已导入 1" in result.output
        assert "tool" in _invoke(env, "list").output

    def test_validate(self, env):
        assert _invoke(env, "validate", "slang").exit_code == 0
        _invoke(env, "add", "draft", "--version", "1")
        result = _invoke(env, "validate", "draft")
        assert result.exit_code == 1
        assert "build_command" in result.output


class TestInstallCommand:
    def test_install_success(self, env):
        result = _invoke(env, "install", "slang")
        assert result.exit_code == 0, result.output
        assert "已安装: slang@2" in result.output
        assert (env["prefix"] / "bin" / "slang").is_file()
        assert (env["prefix"] / "share" / "slang" / "std.sl").is_file()

    def test_install_failure_exit_code(self, env):
        result = _invoke(env, "install", "slang@1")
        assert result.exit_code == 1
        assert "[building]" in result.output

    def test_install_json(self, env, tmp_path):
        result = _invoke(
            env, "install", "slang@2", "--json", "--prefix", str(tmp_path / "alt"),
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["status"] == "installed"
        assert (tmp_path / "alt" / "bin" / "slang").is_file()

    def test_install_unknown(self, env):
        result = _invoke(env, "install", "nope")
        assert result.exit_code == 1
        assert "描述符不存在" in result.output

    def test_duplicate_batch_rejected(self, env):
        result = _invoke(env, "install", "slang@1", "slang@2", "-p", "2")
        assert result.exit_code == 1
        assert "重复" in result.output

    def test_keep_source(self, env):
        result = _invoke(env, "install", "slang", "--keep-source")
        assert result.exit_code == 0
        assert "源码树保留于" in result.output


class TestLoggingOptions:
    def test_json_logging_from_env(self, env, monkeypatch):
        monkeypatch.setenv("RECIPEKIT_LOG_JSON", "1")
        monkeypatch.setenv("RECIPEKIT_LOG_LEVEL", "DEBUG")
        _invoke(env, "list")
        assert env["logging"][-1] == ("DEBUG", True)
