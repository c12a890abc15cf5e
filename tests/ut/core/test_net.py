"""源码地址分类与 URL scheme 校验测试"""

import pytest

from recipekit.core.exceptions import ValidationError
from recipekit.utils.net import (
    is_archive_url,
    is_git_url,
    strip_git_prefix,
    validate_url_scheme,
)


class TestValidateUrlScheme:
    def test_http_ok(self) -> None:
        validate_url_scheme("http://example.com/slang.tar.gz")

    def test_https_ok(self) -> None:
        validate_url_scheme("https://example.com/slang.tar.gz")

    def test_file_rejected(self) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme("file:///etc/passwd")

    def test_empty_scheme_rejected(self) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme("/local/path")

    def test_context_in_error(self) -> None:
        with pytest.raises(ValidationError, match="archive download"):
            validate_url_scheme("ftp://x/y.tgz", context="archive download")


class TestClassify:
    @pytest.mark.parametrize("url", [
        "https://github.com/bww/Slang.git",
        "git@github.com:bww/Slang.git",
        "ssh://git@host/repo",
        "git+https://host/repo",
    ])
    def test_git(self, url: str) -> None:
        assert is_git_url(url)

    @pytest.mark.parametrize("url", [
        "https://host/slang-1.0.tar.gz",
        "https://host/slang.TGZ",
        "https://host/slang.zip?x=1",
    ])
    def test_archive(self, url: str) -> None:
        assert is_archive_url(url)

    def test_plain_page_is_neither(self) -> None:
        assert not is_git_url("https://host/page")
        assert not is_archive_url("https://host/page")

    def test_strip_git_prefix(self) -> None:
        assert strip_git_prefix("git+https://host/r") == "https://host/r"
        assert strip_git_prefix("https://host/r.git") == "https://host/r.git"
