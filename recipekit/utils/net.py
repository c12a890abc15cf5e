"""网络工具 - 源码地址分类与 URL 安全校验"""

from __future__ import annotations

from urllib.parse import urlparse

from recipekit.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))
_GIT_SCHEMES = frozenset(("git", "ssh", "git+ssh", "git+https", "git+http"))
ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz", ".tar", ".zip")


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验下载地址仅使用 http/https，防止 file:// 等非预期协议

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def is_git_url(url: str) -> bool:
    """判断是否为 VCS 地址（.git 结尾、git/ssh 协议或 scp 风格 user@host:path）"""
    parsed = urlparse(url)
    if parsed.scheme in _GIT_SCHEMES:
        return True
    if url.rstrip("/").endswith(".git"):
        return True
    return not parsed.scheme and "@" in url and ":" in url


def is_archive_url(url: str) -> bool:
    """判断是否为归档下载地址"""
    path = urlparse(url).path.lower()
    return path.endswith(ARCHIVE_SUFFIXES)


def strip_git_prefix(url: str) -> str:
    """git+https://... -> https://...，git 命令本身不认识 git+ 前缀"""
    return url[4:] if url.startswith("git+") else url
