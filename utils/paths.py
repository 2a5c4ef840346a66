"""Project/version path resolution and id generation."""

import os
import re
import secrets
import time

from config.defaults import DEFAULTS
from core.errors import InputValidationError

_SEGMENT_RE = re.compile(r"^[\w.-]+$")


def generate_id():
    """Short, roughly time-ordered identifier for canvases and page slots."""
    return _base36(int(time.time() * 1000)) + secrets.token_hex(3)


def _base36(n):
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = digits[r] + out
        if n == 0:
            return out


def parse_version_id(version_id):
    """Split "projectId/versionFolder" into its two parts."""
    parts = (version_id or "").split("/")
    if len(parts) != 2 or not all(parts) or not all(_SEGMENT_RE.match(p) for p in parts):
        raise InputValidationError(
            f"Invalid versionId format: {version_id!r}. Expected \"projectId/versionFolder\""
        )
    if any(p in (".", "..") for p in parts):
        raise InputValidationError(f"Invalid versionId: {version_id!r}")
    return parts[0], parts[1]


def _check_containment(path, root):
    """Verify the resolved path stays within root."""
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(root) + os.sep):
        raise InputValidationError(f"Path escapes projects root: {path}")
    return resolved


def version_path(version_id, root=None):
    """Absolute directory of one project version."""
    root = root or DEFAULTS["projects_root"]
    project_id, version_folder = parse_version_id(version_id)
    return _check_containment(os.path.join(root, project_id, "versions", version_folder), root)
