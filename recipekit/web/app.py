"""轻量级 Web API（基于 Flask）

提供：描述符目录查询/登记/删除、静态校验、同步安装。

启动方式: recipekit dashboard --port 8888
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from recipekit import __version__
from recipekit.web.blueprints.descriptors_bp import descriptors_bp

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH
app.register_blueprint(descriptors_bp)


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


@app.route("/api/health")
def health():
    return jsonify(status="ok", version=__version__)


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("recipekit API 已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
