import shutil
import subprocess
import time
from pathlib import Path

import pytest

from git_store import GitResult, SyncStatus

SAMPLE = (
    "# Todo List\n"
    "\n"
    "## General\n"
    "\n"
    "- [ ] buy milk\n"
    "- [x] call mom\n"
    "\n"
    "## Work\n"
    "\n"
    "- [ ] ship\n"
)

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class FakeRepo:
    """In-memory stand-in for GitRepo: `remote` is what has been pushed."""

    def __init__(self, text=SAMPLE):
        self.remote = text
        self.local = text
        self.commits = []
        self.publish_calls = []
        self.refreshes = 0
        self.fail_push = False
        self.read_delay = 0

    def refresh(self):
        self.refreshes += 1
        self.local = self.remote
        return GitResult(SyncStatus.OK)

    def read_document(self):
        text = self.local
        if self.read_delay:
            time.sleep(self.read_delay)
        return text

    def write_document(self, text):
        self.local = text

    def publish(self, message):
        self.publish_calls.append(message)
        if self.local == self.remote:
            return GitResult(SyncStatus.NOOP)
        if self.fail_push:
            return GitResult(SyncStatus.FAILED, "push rejected")
        self.commits.append(message)
        self.remote = self.local
        return GitResult(SyncStatus.OK)


def run_git(*args, cwd) -> str:
    return subprocess.run(
        ["git", "-c", "user.name=test", "-c", "user.email=test@example.com", *args],
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
        encoding="utf-8",
    ).stdout


def make_remote(root: Path, text=SAMPLE) -> Path:
    """A bare repository with `text` committed as TODO.md on master."""
    bare = root / "remote.git"
    run_git("init", "--bare", str(bare), cwd=root)
    run_git("symbolic-ref", "HEAD", "refs/heads/master", cwd=bare)
    if text is not None:
        seed = root / "seed"
        run_git("init", str(seed), cwd=root)
        (seed / "TODO.md").write_text(text, encoding="utf-8")
        run_git("add", "TODO.md", cwd=seed)
        run_git("commit", "-m", "seed", cwd=seed)
        run_git("push", str(bare), "HEAD:refs/heads/master", cwd=seed)
    return bare


def push_from_elsewhere(root: Path, bare: Path, text: str, message: str = "elsewhere") -> None:
    other = root / "other"
    if not other.exists():
        run_git("clone", str(bare), str(other), cwd=root)
    run_git("pull", "origin", "master", cwd=other)
    (other / "TODO.md").write_text(text, encoding="utf-8")
    run_git("commit", "-am", message, cwd=other)
    run_git("push", "origin", "HEAD:master", cwd=other)


def remote_text(bare: Path) -> str:
    return run_git("show", "master:TODO.md", cwd=bare)


def remote_log(bare: Path) -> list:
    return run_git("log", "--format=%s", "master", cwd=bare).splitlines()
