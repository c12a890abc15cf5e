"""Web 层统一响应辅助函数"""

from __future__ import annotations

from flask import Response, jsonify

from recipekit.core.exceptions import DescriptorNotFoundError, RecipeError


def not_found(resource: str) -> tuple[Response, int]:
    """资源不存在"""
    return jsonify(error=f"{resource}不存在"), 404


def bad_request(message: str) -> tuple[Response, int]:
    """请求参数错误"""
    return jsonify(error=message), 400


def from_error(exc: RecipeError) -> tuple[Response, int]:
    """业务异常 -> JSON 错误响应"""
    status = 404 if isinstance(exc, DescriptorNotFoundError) else 400
    body: dict = {"error": str(exc), "code": exc.code}
    details = getattr(exc, "details", None)
    if details:
        body["details"] = details
    return jsonify(body), status
