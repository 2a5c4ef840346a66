"""Git primitives run through an allowlisted, time-limited subprocess."""

import logging
import os
import subprocess
from dataclasses import dataclass

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

_LOG_SEP = "\x1f"


class GitError(RuntimeError):
    """A git command failed or could not be run."""


@dataclass
class Commit:
    hash: str
    message: str
    date: str
    author: str

    def to_dict(self):
        return {"hash": self.hash, "message": self.message, "date": self.date, "author": self.author}


def run_command(command, cwd, timeout=None):
    """Run an allowlisted command and return its stdout.

    Raises:
        ValueError: If the command is not allowlisted or cwd is invalid.
        GitError: On timeout, a missing executable or a non-zero exit.
    """
    if timeout is None:
        timeout = DEFAULTS["git_timeout"]

    if not command or not isinstance(command, list):
        raise ValueError("Command must be a non-empty list of strings")

    executable = command[0]
    allowed = DEFAULTS["allowed_commands"]
    if executable not in allowed:
        raise ValueError(f"Command '{executable}' not in allowlist: {allowed}")

    cwd = os.path.realpath(cwd)
    if not os.path.isdir(cwd):
        raise ValueError(f"Working directory does not exist: {cwd}")

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise GitError(f"Command timed out after {timeout}s: {' '.join(command)}")
    except FileNotFoundError:
        raise GitError(f"Command not found: {executable}")

    if result.returncode != 0:
        output = (result.stderr or result.stdout).strip()
        raise GitError(f"{' '.join(command[:2])} failed: {output}")
    return result.stdout


def is_git_repo(project_path):
    return os.path.isdir(os.path.join(project_path, ".git"))


def init_repo(project_path):
    """Initialize a repository on branch 'main' with an initial commit."""
    run_command(["git", "init"], project_path)
    run_command(["git", "config", "user.email", "canvas@canvassmith.local"], project_path)
    run_command(["git", "config", "user.name", "Canvas"], project_path)

    # Something to commit so the branch exists
    open(os.path.join(project_path, ".gitkeep"), "a").close()
    run_command(["git", "add", ".gitkeep"], project_path)
    run_command(["git", "commit", "-m", "Initial commit"], project_path)
    run_command(["git", "branch", "-M", "main"], project_path)
    logger.info("Initialized git repository in %s", project_path)


def commit(project_path, message):
    """Stage everything and commit. Does nothing when the tree is clean.

    Returns True if a commit was created.
    """
    if not is_git_repo(project_path):
        raise GitError(f"Not a git repository: {project_path}")

    run_command(["git", "add", "-A"], project_path)
    status = run_command(["git", "status", "--porcelain"], project_path)
    if not status.strip():
        logger.debug("Nothing to commit in %s", project_path)
        return False

    run_command(["git", "commit", "-m", message], project_path)
    logger.info("Committed %s: %s", project_path, message)
    return True


def log(project_path, limit=50):
    """Return up to `limit` commits, newest first."""
    if not is_git_repo(project_path):
        raise GitError(f"Not a git repository: {project_path}")

    fmt = _LOG_SEP.join(["%H", "%s", "%aI", "%an"])
    stdout = run_command(["git", "log", f"-{int(limit)}", f"--pretty=format:{fmt}"], project_path)

    commits = []
    for line in stdout.splitlines():
        parts = line.split(_LOG_SEP)
        if len(parts) != 4 or not parts[0]:
            continue
        commits.append(Commit(*parts))
    return commits


def checkout(project_path, file_path, commit_hash):
    """Restore one file from an earlier commit into the working tree."""
    if not is_git_repo(project_path):
        raise GitError(f"Not a git repository: {project_path}")
    if not commit_hash or commit_hash.startswith("-"):
        raise ValueError(f"Invalid commit ref: {commit_hash!r}")

    normalized = os.path.normpath(file_path)
    if os.path.isabs(normalized) or normalized.startswith(".."):
        raise ValueError(f"Invalid file path: {file_path}")

    run_command(["git", "checkout", commit_hash, "--", normalized], project_path)
