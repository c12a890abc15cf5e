"""CLI - 描述符目录管理命令"""

from __future__ import annotations

import click

from recipekit.cli import _svc
from recipekit.core.exceptions import RecipeError
from recipekit.core.models import DestinationCategory, InstallMapping, PackageDescriptor
from recipekit.core.validator import describe


def register(group: click.Group) -> None:
    group.add_command(list_descriptors)
    group.add_command(show)
    group.add_command(add)
    group.add_command(import_catalog)
    group.add_command(remove)
    group.add_command(validate)


@click.command(name="list")
def list_descriptors() -> None:
    """列出目录中的全部包及版本"""
    items = _svc().catalog.list_all()
    if not items:
        click.echo("目录为空。")
        return
    for item in items:
        versions = ", ".join(item["versions"]) or "-"
        click.echo(f"  {item['name']:20s} [{versions}]  {item['homepage']}")


@click.command()
@click.argument("name")
@click.option("--version", default=None, help="指定版本（默认最新）")
def show(name: str, version: str | None) -> None:
    """显示描述符详情"""
    try:
        d = _svc().catalog.require(name, version)
    except RecipeError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"{d.label}")
    if d.homepage:
        click.echo(f"  homepage:     {d.homepage}")
    click.echo(f"  source:       {d.source_url}")
    click.echo(f"  build:        {d.build_command}")
    if d.build_environment:
        click.echo(f"  build env:    {d.build_environment}")
    if d.dependencies:
        click.echo(f"  dependencies: {', '.join(sorted(d.dependencies))}")
    for m in d.install_mappings:
        click.echo(f"  install:      {m.source_path} -> {m.category.value}")


def _parse_install(values: tuple[str, ...]) -> tuple[InstallMapping, ...]:
    mappings = []
    for value in values:
        source, sep, category = value.rpartition(":")
        if not sep or not source:
            raise click.BadParameter(f"格式应为 source:category, 实际: {value}")
        try:
            mappings.append(InstallMapping(source, DestinationCategory.parse(category)))
        except RecipeError as e:
            raise click.BadParameter(str(e)) from e
    return tuple(mappings)


@click.command()
@click.argument("name")
@click.option("--version", "version", required=True, help="描述符版本")
@click.option("--source-url", default="", help="源码地址（VCS / 归档 / 本地目录）")
@click.option("--build-command", default="", help="构建命令")
@click.option("--install", "installs", multiple=True, help="安装映射 source:category（可多次指定）")
@click.option("--dep", "deps", multiple=True, help="声明依赖（可多次指定）")
@click.option("--homepage", default="", help="项目主页")
@click.option("--build-env", default="", help="构建环境标签")
@click.option("--sha256", default="", help="归档校验和")
def add(
    name: str, version: str, source_url: str, build_command: str,
    installs: tuple[str, ...], deps: tuple[str, ...], homepage: str,
    build_env: str, sha256: str,
) -> None:
    """登记一个描述符版本"""
    descriptor = PackageDescriptor(
        name=name, version=version, source_url=source_url,
        build_command=build_command, dependencies=frozenset(deps),
        install_mappings=_parse_install(installs), homepage=homepage,
        build_environment=build_env, sha256=sha256,
    )
    problems = describe(descriptor)
    for p in problems:
        click.echo(f"  警告: {p}")
    try:
        _svc().catalog.register(descriptor)
    except RecipeError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"描述符已登记: {descriptor.label}")


@click.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_catalog(path: str) -> None:
    """从目录文件导入描述符"""
    try:
        imported = _svc().catalog.import_file(path)
    except RecipeError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"已导入 {len(imported)} 个描述符")


@click.command()
@click.argument("name")
@click.option("--version", default=None, help="仅删除指定版本")
def remove(name: str, version: str | None) -> None:
    """删除描述符"""
    if _svc().catalog.remove(name, version):
        click.echo(f"描述符已移除: {name}{'@' + version if version else ''}")
    else:
        raise click.ClickException(f"描述符不存在: {name}")


@click.command()
@click.argument("name")
@click.option("--version", default=None, help="指定版本（默认最新）")
def validate(name: str, version: str | None) -> None:
    """静态校验描述符"""
    try:
        problems = _svc().installs.validate(name, version)
    except RecipeError as e:
        raise click.ClickException(str(e)) from e
    if not problems:
        click.echo(f"校验通过: {name}")
        return
    for p in problems:
        click.echo(f"  - {p}")
    raise click.ClickException(f"校验失败: {len(problems)} 项")
