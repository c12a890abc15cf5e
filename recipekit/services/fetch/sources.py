"""源码来源适配器 - Git / 归档 / 本地目录

每个适配器把 source_url 拉取到给定目录下，返回 (构建工作目录, 修订标识)。
网络或 VCS 失败抛 FetchError，超过时限抛 StageTimeoutError。
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import socket
import tarfile
import urllib.error
import urllib.request
import zipfile
from pathlib import Path
from urllib.parse import urlparse

from recipekit.core.exceptions import FetchError, StageTimeoutError, ValidationError
from recipekit.core.models import PackageDescriptor
from recipekit.utils.net import strip_git_prefix, validate_url_scheme
from recipekit.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

STAGE = "fetching"


def _single_child(directory: Path) -> Path:
    """归档只有一个顶层目录时以它为工作目录"""
    children = [c for c in directory.iterdir() if not c.name.startswith(".")]
    if len(children) == 1 and children[0].is_dir():
        return children[0]
    return directory


class GitSource:
    """Git 仓库来源（浅克隆）"""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self._executor = executor

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def fetch(
        self, descriptor: PackageDescriptor, dest: Path, timeout: float | None,
    ) -> tuple[Path, str]:
        url = strip_git_prefix(descriptor.source_url)
        logger.info("git clone: %s -> %s", url, dest)
        try:
            r = self.executor.execute(
                ["git", "clone", "--depth", "1", url, str(dest)], timeout=timeout,
            )
        except OSError as e:
            raise FetchError(f"无法执行 git clone {url}: {e}") from e
        if r.timed_out:
            raise StageTimeoutError(STAGE, timeout)
        if not r.success:
            raise FetchError(
                f"git clone 失败 {url} (rc={r.returncode}): {r.stderr[:300]}"
            )
        return dest, self._commit_sha(dest)

    def _commit_sha(self, workspace: Path) -> str:
        try:
            r = self.executor.execute(
                ["git", "rev-parse", "HEAD"], cwd=str(workspace), timeout=30,
            )
        except OSError as e:
            raise FetchError(f"无法执行 git rev-parse: {e}") from e
        return r.stdout.strip()[:12] if r.success else ""


class ArchiveSource:
    """归档来源：http(s) 下载或本地归档文件，支持 tar.* / zip"""

    def fetch(
        self, descriptor: PackageDescriptor, dest: Path, timeout: float | None,
    ) -> tuple[Path, str]:
        url = descriptor.source_url
        parsed = urlparse(url)
        filename = parsed.path.rstrip("/").split("/")[-1] or "source"
        archive = dest.parent / f"_{filename}"
        if parsed.scheme and parsed.scheme != "file":
            self._download(url, archive, timeout)
        else:
            local = Path(parsed.path if parsed.scheme else url).expanduser()
            if not local.is_file():
                raise FetchError(f"归档不存在: {url}")
            try:
                shutil.copy2(local, archive)
            except OSError as e:
                raise FetchError(f"复制归档失败: {url} - {e}") from e

        try:
            digest = self._sha256(archive)
        except OSError as e:
            raise FetchError(f"读取归档失败: {filename} - {e}") from e
        if descriptor.sha256 and digest != descriptor.sha256.lower():
            raise FetchError(
                f"校验和不匹配 {filename}: 期望 {descriptor.sha256}, 实际 {digest}"
            )

        dest.mkdir(parents=True, exist_ok=True)
        self._extract(archive, dest)
        archive.unlink(missing_ok=True)
        logger.info("归档已解压: %s -> %s", filename, dest)
        return _single_child(dest), digest[:12]

    @staticmethod
    def _download(url: str, target: Path, timeout: float | None) -> None:
        try:
            validate_url_scheme(url, context="archive download")
        except ValidationError as e:
            raise FetchError(str(e)) from e
        logger.info("下载: %s", url)
        try:
            with urllib.request.urlopen(url, timeout=timeout) as resp:  # nosec B310
                with open(target, "wb") as f:
                    shutil.copyfileobj(resp, f)
        except (socket.timeout, TimeoutError) as e:
            raise StageTimeoutError(STAGE, timeout) from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise StageTimeoutError(STAGE, timeout) from e
            raise FetchError(f"下载失败: {url} - {e}") from e
        except OSError as e:
            raise FetchError(f"下载失败: {url} - {e}") from e

    @staticmethod
    def _sha256(path: Path) -> str:
        sha256 = hashlib.sha256()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()

    @staticmethod
    def _extract(archive: Path, dest: Path) -> None:
        try:
            if zipfile.is_zipfile(archive):
                with zipfile.ZipFile(archive) as zf:
                    zf.extractall(dest)
                return
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(dest), filter="data")  # noqa: S202
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise FetchError(f"归档损坏或无法解压: {archive.name} - {e}") from e


class LocalSource:
    """本地目录来源（file:// 或普通路径），复制到临时源码树"""

    def fetch(
        self, descriptor: PackageDescriptor, dest: Path, timeout: float | None,
    ) -> tuple[Path, str]:
        url = descriptor.source_url
        src = Path(urlparse(url).path if url.startswith("file://") else url).expanduser()
        if not src.is_dir():
            raise FetchError(f"本地源码目录不存在: {url}")
        try:
            shutil.copytree(src, dest, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise FetchError(f"复制本地源码失败: {url} - {e}") from e
        logger.info("本地源码已复制: %s -> %s", src, dest)
        return dest, ""
