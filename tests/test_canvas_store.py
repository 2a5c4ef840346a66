"""Tests for core.canvas_store — real filesystem under tmp_path, git mocked."""

import json
import os
from unittest.mock import patch

import pytest

from core.canvas_store import CanvasStore
from core.errors import InputValidationError, PersistenceError, VersionControlError
from utils.git import GitError


@pytest.fixture
def mock_git():
    with patch("core.canvas_store.git") as git:
        git.GitError = GitError
        git.is_git_repo.return_value = True
        git.commit.return_value = True
        yield git


@pytest.fixture
def store(tmp_path, mock_git):
    s = CanvasStore("proj/v1", root=str(tmp_path))
    s.create("Canvas")
    return s


def _meta(store):
    with open(store.meta_path) as f:
        return json.load(f)


# --- paths ---

@pytest.mark.parametrize("version_id", ["", "proj", "a/b/c", "../v1", "proj/..", "proj/v 1"])
def test_invalid_version_ids(tmp_path, version_id):
    with pytest.raises(InputValidationError):
        CanvasStore(version_id, root=str(tmp_path))


def test_layout(tmp_path):
    s = CanvasStore("proj/v1", root=str(tmp_path))
    assert s.meta_path == os.path.join(os.path.realpath(tmp_path), "proj", "versions", "v1", "canvas", "canvas.json")


# --- spec ---

def test_read_spec(tmp_path):
    s = CanvasStore("proj/v1", root=str(tmp_path))
    os.makedirs(s.project_path)
    with open(os.path.join(s.project_path, "spec.md"), "w") as f:
        f.write("# Spec")
    assert s.read_spec() == "# Spec"


def test_read_missing_spec(tmp_path):
    assert CanvasStore("proj/v1", root=str(tmp_path)).read_spec() == ""


# --- create / get ---

def test_create_writes_metadata_and_commits(tmp_path, mock_git):
    mock_git.is_git_repo.return_value = False
    s = CanvasStore("proj/v1", root=str(tmp_path))

    meta = s.create("My canvas")

    assert s.exists()
    data = _meta(s)
    assert data["id"] == meta.id
    assert data["versionId"] == "proj/v1"
    assert data["pages"] == []
    mock_git.init_repo.assert_called_once_with(s.project_path)
    mock_git.commit.assert_called_once_with(s.project_path, "Create canvas: My canvas")


def test_create_twice_fails(store):
    with pytest.raises(PersistenceError, match="already exists"):
        store.create("Again")


def test_get_missing_canvas(tmp_path):
    assert CanvasStore("proj/v1", root=str(tmp_path)).get() is None


def test_load_meta_missing(tmp_path):
    with pytest.raises(PersistenceError, match="not found"):
        CanvasStore("proj/v1", root=str(tmp_path)).load_meta()


def test_load_meta_corrupt(store):
    with open(store.meta_path, "w") as f:
        f.write("{not json")
    with pytest.raises(PersistenceError, match="unreadable"):
        store.load_meta()


# --- slots ---

def test_allocate_slots_one_per_task(store, make_design, make_plan):
    plan = make_plan(make_design(3))

    slots = store.allocate_slots(plan.tasks)

    data = _meta(store)
    assert [p["name"] for p in data["pages"]] == ["Page 1", "Page 2", "Page 3"]
    assert [p["id"] for p in data["pages"]] == [slots["page-1"], slots["page-2"], slots["page-3"]]
    assert len(set(slots.values())) == 3
    assert data["pages"][0]["htmlPath"] == f"pages/{slots['page-1']}.html"
    assert data["pages"][0]["description"] == "Page number 1"


def test_allocate_slots_replaces_previous_pages(store, make_design, make_plan):
    old = store.allocate_slots(make_plan(make_design(3)).tasks)
    for slot in old.values():
        store.write_page(slot, "<html>old</html>")

    new = store.allocate_slots(make_plan(make_design(2)).tasks)

    assert len(_meta(store)["pages"]) == 2
    for slot in old.values():
        assert not os.path.exists(store.page_path(slot))
    assert set(new.values()).isdisjoint(old.values())


def test_slots_without_html_read_as_empty(store, make_design, make_plan):
    slots = store.allocate_slots(make_plan(make_design(2)).tasks)
    store.write_page(slots["page-1"], "<html>1</html>")

    canvas = store.get()

    contents = {p["id"]: p["htmlContent"] for p in canvas["pages"]}
    assert contents == {slots["page-1"]: "<html>1</html>", slots["page-2"]: ""}


def test_touch_pages(store, make_design, make_plan):
    store.allocate_slots(make_plan(make_design(2)).tasks)

    meta = store.touch_pages()

    data = _meta(store)
    assert data["updatedAt"] == meta.updated_at
    assert all(p["updatedAt"] == meta.updated_at for p in data["pages"])


def test_write_failure_is_persistence_error(store):
    with patch("builtins.open", side_effect=PermissionError("read-only")):
        with pytest.raises(PersistenceError, match="read-only"):
            store.write_page("abc", "<html></html>")


# --- version control ---

def test_commit_failure_is_version_control_error(store, mock_git):
    mock_git.commit.side_effect = GitError("index.lock exists")
    with pytest.raises(VersionControlError, match="index.lock"):
        store.commit("msg")


def test_history_without_repo(store, mock_git):
    mock_git.is_git_repo.return_value = False
    assert store.history() == []


def test_revert_page(store, mock_git):
    store.revert_page("abc123", "1a2b3c4d5e")
    mock_git.checkout.assert_called_once_with(store.project_path, "canvas/pages/abc123.html", "1a2b3c4d5e")
    mock_git.commit.assert_called_with(store.project_path, "Revert page abc123 to 1a2b3c4")


def test_revert_rejects_path_in_page_id(store):
    with pytest.raises(InputValidationError, match="Invalid page id"):
        store.revert_page("../../spec", "1a2b3c4")


@pytest.mark.parametrize("ref", ["", "--orphan", "-p", "HEAD~1", "abc", "zzzzzzz", "a" * 41])
def test_revert_rejects_bad_commit_ref(store, mock_git, ref):
    with pytest.raises(InputValidationError, match="Invalid commit ref"):
        store.revert_page("abc123", ref)
    mock_git.checkout.assert_not_called()
