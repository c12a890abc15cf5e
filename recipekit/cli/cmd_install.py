"""CLI - 安装命令"""

from __future__ import annotations

import json

import click

from recipekit.cli import _parse_ref, _svc
from recipekit.core.exceptions import BuildError, RecipeError
from recipekit.core.models import RunResult


def register(group: click.Group) -> None:
    group.add_command(install)


def _echo_result(result: RunResult) -> None:
    label = result.descriptor.label
    if result.success and result.layout is not None:
        click.echo(f"已安装: {label} ({len(result.layout.files)} 个文件, {result.duration:.1f}s)")
        for path in result.layout.files:
            click.echo(f"  {path}")
    else:
        stage = result.stage.value if result.stage else "-"
        click.echo(f"失败: {label} [{stage}] {result.cause}", err=True)
        if isinstance(result.cause, BuildError) and result.cause.output:
            click.echo(result.cause.output, err=True)
    if result.source_path:
        click.echo(f"  源码树保留于: {result.source_path}")


@click.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--prefix", default="", help="安装前缀（默认取配置）")
@click.option("--parallel", "-p", default=1, help="并发安装数（仅用于互相独立的包）")
@click.option("--keep-source", is_flag=True, help="保留临时源码树用于调试（默认取配置）")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 输出结果")
def install(
    packages: tuple[str, ...], prefix: str, parallel: int,
    keep_source: bool, as_json: bool,
) -> None:
    """安装包，PACKAGES 形如 name 或 name@version"""
    svc = _svc().installs
    refs = [_parse_ref(p) for p in packages]
    try:
        if len(refs) == 1:
            name, version = refs[0]
            results = [svc.install(
                name, version, prefix=prefix, keep_source=keep_source or None,
            )]
        else:
            results = svc.install_many(refs, parallel=parallel, prefix=prefix)
    except RecipeError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    else:
        for r in results:
            _echo_result(r)

    failed = [r for r in results if not r.success]
    if failed:
        raise SystemExit(1)
