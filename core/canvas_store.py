"""Filesystem-backed canvas storage for one project version.

Layout under the version directory:

    spec.md
    canvas/canvas.json        CanvasMeta
    canvas/pages/<slot>.html  one file per page slot

Nothing here locks: two runs against the same canvas can interleave writes.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone

from pydantic import ValidationError

from core.errors import InputValidationError, PersistenceError, VersionControlError
from core.schemas import CanvasMeta, CanvasPageMeta
from utils import git
from utils.paths import generate_id, version_path

logger = logging.getLogger(__name__)

_SLOT_RE = re.compile(r"^[\w-]+$")
_COMMIT_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")


def _now():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CanvasStore:
    """Reads the spec and owns canvas metadata and page files of one version."""

    def __init__(self, version_id, root=None):
        self.version_id = version_id
        self.project_path = version_path(version_id, root)
        self.canvas_dir = os.path.join(self.project_path, "canvas")
        self.meta_path = os.path.join(self.canvas_dir, "canvas.json")
        self.pages_dir = os.path.join(self.canvas_dir, "pages")

    # --- Spec ---

    def read_spec(self):
        """Return spec.md text, or "" when the file is missing."""
        try:
            with open(os.path.join(self.project_path, "spec.md")) as f:
                return f.read()
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise PersistenceError(f"Failed to read spec: {e}")

    # --- Metadata ---

    def exists(self):
        return os.path.isfile(self.meta_path)

    def load_meta(self) -> CanvasMeta:
        try:
            with open(self.meta_path) as f:
                return CanvasMeta.model_validate(json.load(f))
        except FileNotFoundError:
            raise PersistenceError("Canvas metadata not found")
        except (OSError, ValueError, ValidationError) as e:
            raise PersistenceError(f"Canvas metadata is unreadable: {e}")

    def save_meta(self, meta: CanvasMeta):
        self._write(self.meta_path, json.dumps(meta.to_json_dict(), indent=2))

    def create(self, name="Canvas") -> CanvasMeta:
        """Create an empty canvas, initializing the git repository if needed."""
        if self.exists():
            raise PersistenceError("Canvas already exists for this version")

        now = _now()
        meta = CanvasMeta(
            id=generate_id(), version_id=self.version_id, name=name,
            pages=[], created_at=now, updated_at=now,
        )
        try:
            os.makedirs(self.pages_dir, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to create canvas directories: {e}")

        try:
            if not git.is_git_repo(self.project_path):
                git.init_repo(self.project_path)
        except git.GitError as e:
            raise VersionControlError(f"Failed to initialize git repository: {e}")

        self.save_meta(meta)
        self.commit(f"Create canvas: {name}")
        logger.info("Created canvas %s for %s", meta.id, self.version_id)
        return meta

    def get(self):
        """Canvas metadata with each page's HTML inlined, or None."""
        if not self.exists():
            return None
        meta = self.load_meta().to_json_dict()
        for page in meta["pages"]:
            page["htmlContent"] = self.read_page(page["id"])
        return meta

    # --- Pages ---

    def page_path(self, slot_id):
        return os.path.join(self.pages_dir, f"{slot_id}.html")

    def read_page(self, slot_id):
        try:
            with open(self.page_path(slot_id)) as f:
                return f.read()
        except FileNotFoundError:
            return ""

    def allocate_slots(self, tasks):
        """Replace every stored page with one empty slot per task.

        Old page files are deleted and the new metadata is persisted before
        any HTML exists, so storage stays consistent if generation dies.

        Returns:
            Dict mapping task page id to its new slot id.
        """
        meta = self.load_meta()
        for old in meta.pages:
            try:
                os.remove(self.page_path(old.id))
            except FileNotFoundError:
                pass
            except OSError as e:
                raise PersistenceError(f"Failed to delete page {old.id}: {e}")

        now = _now()
        slots = {}
        meta.pages = []
        for task in tasks:
            slot_id = generate_id()
            slots[task.page_id] = slot_id
            meta.pages.append(CanvasPageMeta(
                id=slot_id,
                name=task.page_name,
                description=task.description,
                html_path=f"pages/{slot_id}.html",
                created_at=now,
                updated_at=now,
            ))
        meta.updated_at = now
        self.save_meta(meta)

        try:
            os.makedirs(self.pages_dir, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to create pages directory: {e}")
        logger.info("Allocated %d page slot(s) for %s", len(slots), self.version_id)
        return slots

    def write_page(self, slot_id, html):
        self._write(self.page_path(slot_id), html)

    def touch_pages(self):
        """Set updatedAt on the canvas and every page to now."""
        meta = self.load_meta()
        now = _now()
        for page in meta.pages:
            page.updated_at = now
        meta.updated_at = now
        self.save_meta(meta)
        return meta

    # --- Version control ---

    def commit(self, message):
        try:
            return git.commit(self.project_path, message)
        except (git.GitError, ValueError) as e:
            raise VersionControlError(f"Failed to commit: {e}")

    def history(self, limit=50):
        """Commits of this version, or [] when it is not under git."""
        if not git.is_git_repo(self.project_path):
            return []
        try:
            return git.log(self.project_path, limit)
        except git.GitError as e:
            raise VersionControlError(f"Failed to retrieve commit log: {e}")

    def revert_page(self, page_id, commit_hash):
        """Restore one page's HTML from an earlier commit and commit the result."""
        if not _SLOT_RE.match(page_id or ""):
            raise InputValidationError(f"Invalid page id: {page_id!r}")
        if not _COMMIT_RE.match(commit_hash or ""):
            raise InputValidationError(f"Invalid commit ref: {commit_hash!r}")
        try:
            git.checkout(self.project_path, f"canvas/pages/{page_id}.html", commit_hash)
        except git.GitError as e:
            raise VersionControlError(f"Failed to checkout file: {e}")
        self.commit(f"Revert page {page_id} to {commit_hash[:7]}")

    def _write(self, path, content):
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w") as f:
                f.write(content)
        except OSError as e:
            raise PersistenceError(f"Failed to write {os.path.relpath(path, self.project_path)}: {e}")
