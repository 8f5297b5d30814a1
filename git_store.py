"""
Local git working copy that holds TODO.md.

refresh() and publish() never raise: failures are logged and returned as a
FAILED GitResult so the caller keeps serving whatever is on disk. Only the
first clone in ensure_ready() is allowed to fail loudly.
"""
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 30

_CREDENTIALS_RE = re.compile(r"(https?://)[^/@\s]+@")


def redact(text: str) -> str:
    """Hide any credential embedded in a URL."""
    return _CREDENTIALS_RE.sub(r"\1***@", text)


def remote_url_for(repo: str, token: str = "", base: str = "https://github.com") -> str:
    scheme, host = base.split("://", 1)
    if token:
        return f"{scheme}://{token}@{host}/{repo}.git"
    return f"{scheme}://{host}/{repo}.git"


class GitError(Exception):
    def __init__(self, cmd: list[str], detail: str):
        self.command = redact(" ".join(["git", *cmd]))
        self.detail = redact(detail.strip())
        super().__init__(f"{self.command}: {self.detail}")


class SyncStatus(Enum):
    OK = "ok"
    NOOP = "noop"
    FAILED = "failed"


@dataclass
class GitResult:
    status: SyncStatus
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not SyncStatus.FAILED


class GitRepo:
    def __init__(
        self,
        path,
        remote_url: str,
        branch: str = "master",
        filename: str = "TODO.md",
        timeout: float = GIT_TIMEOUT_SECONDS,
        author_name: str = "todo-app",
        author_email: str = "todo@localhost",
    ):
        self.path = Path(path)
        self.remote_url = remote_url
        self.branch = branch
        self.filename = filename
        self.timeout = timeout
        self.author_name = author_name
        self.author_email = author_email

    @property
    def document_path(self) -> Path:
        return self.path / self.filename

    def _git(self, *args: str, cwd: Optional[Path] = None) -> str:
        cmd = list(args)
        try:
            proc = subprocess.run(
                ["git", *cmd],
                cwd=str(cwd or self.path),
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as exc:
            raise GitError(cmd, exc.stderr or exc.stdout or str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            raise GitError(cmd, f"timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise GitError(cmd, str(exc)) from exc
        return proc.stdout

    def is_cloned(self) -> bool:
        return (self.path / ".git").exists()

    def ensure_ready(self) -> None:
        if self.is_cloned():
            return
        os.makedirs(self.path, exist_ok=True)
        logger.info("Cloning %s into %s", redact(self.remote_url), self.path)
        self._git("clone", self.remote_url, str(self.path), cwd=self.path.parent)
        self._git("config", "user.email", self.author_email)
        self._git("config", "user.name", self.author_name)

    def refresh(self) -> GitResult:
        try:
            self._git("fetch", "origin")
            self._git("reset", "--hard", f"origin/{self.branch}")
        except GitError as exc:
            logger.error("Pull failed: %s", exc)
            return GitResult(SyncStatus.FAILED, str(exc))
        return GitResult(SyncStatus.OK)

    def publish(self, message: str) -> GitResult:
        try:
            self._git("add", self.filename)
            if not self._git("status", "--porcelain").strip():
                return GitResult(SyncStatus.NOOP)
            self._git("commit", "-m", message)
            self._git("push", "origin", f"HEAD:{self.branch}")
        except GitError as exc:
            logger.error("Push failed: %s", exc)
            return GitResult(SyncStatus.FAILED, str(exc))
        logger.info("Published: %s", message)
        return GitResult(SyncStatus.OK)

    def read_document(self) -> Optional[str]:
        if not self.document_path.exists():
            return None
        return self.document_path.read_text(encoding="utf-8")

    def write_document(self, text: str) -> None:
        self.document_path.write_text(text, encoding="utf-8")
