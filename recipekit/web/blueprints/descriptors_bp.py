"""描述符目录 / 安装 API Blueprint"""

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request

from recipekit.core.exceptions import RecipeError
from recipekit.core.validator import describe
from recipekit.web.responses import bad_request, from_error, not_found

descriptors_bp = Blueprint("descriptors", __name__, url_prefix="/api/descriptors")


def _container():  # type: ignore[no-untyped-def]
    from recipekit.services.container import get_container
    return get_container()


@descriptors_bp.route("", methods=["GET"])
def list_all() -> Response:
    return jsonify(descriptors=_container().catalog.list_all())


@descriptors_bp.route("/<name>", methods=["GET"])
def get(name: str) -> tuple[Response, int] | Response:
    version = request.args.get("version")
    try:
        descriptor = _container().catalog.get(name, version)
    except RecipeError as e:
        return from_error(e)
    if descriptor is None:
        return not_found("描述符")
    return jsonify(descriptor=descriptor.to_dict())


@descriptors_bp.route("", methods=["POST"])
def add() -> tuple[Response, int] | Response:
    from recipekit.core.catalog import descriptor_from_entry
    body = request.get_json(silent=True) or {}
    name = body.get("name", "")
    version = str(body.get("version", "") or "")
    if not name or not version:
        return bad_request("需要提供 name 和 version")
    try:
        descriptor = descriptor_from_entry(name, version, body, body.get("homepage", ""))
        _container().catalog.register(descriptor)
    except RecipeError as e:
        return from_error(e)
    return jsonify(
        message=f"描述符已登记: {descriptor.label}",
        problems=describe(descriptor),
    )


@descriptors_bp.route("/<name>", methods=["DELETE"])
def delete(name: str) -> tuple[Response, int] | Response:
    version = request.args.get("version")
    if _container().catalog.remove(name, version):
        return jsonify(message=f"描述符已删除: {name}")
    return not_found("描述符")


@descriptors_bp.route("/<name>/validate", methods=["POST"])
def validate(name: str) -> tuple[Response, int] | Response:
    body = request.get_json(silent=True) or {}
    try:
        problems = _container().installs.validate(name, body.get("version"))
    except RecipeError as e:
        return from_error(e)
    return jsonify(name=name, valid=not problems, problems=problems)


@descriptors_bp.route("/<name>/install", methods=["POST"])
def install(name: str) -> tuple[Response, int] | Response:
    """同步执行一次安装，返回 {package, version, status, stage, cause}"""
    body = request.get_json(silent=True) or {}
    try:
        result = _container().installs.install(
            name, body.get("version"),
            prefix=body.get("prefix", ""),
            keep_source=body.get("keep_source"),
        )
    except RecipeError as e:
        return from_error(e)
    status = 200 if result.success else 422
    return jsonify(result.to_dict()), status
