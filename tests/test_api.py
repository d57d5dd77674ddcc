"""
Tests for the REST API routes.

Uses FastAPI TestClient against a real FileProjectStore with a temp data dir.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from mdtasks.api.app import create_app
from mdtasks.store.file_store import FileProjectStore

CHORES = (
    "# Chores\n"
    "\n"
    "### Home\n"
    "- [ ] Parent\n"          # line 4
    "    - [ ] Child A\n"     # line 5
    "- [ ] Water plants #due:2025-12-01 #repeat:weekly\n"   # line 6
    "\n"
    "### Work\n"
    "- [ ] Report\n"          # line 9
)


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    (path / "chores.md").write_text(CHORES, encoding="utf-8")
    return path


@pytest.fixture
def client(data_dir):
    return TestClient(create_app(FileProjectStore(data_dir)))


class TestProjects:
    def test_list(self, client):
        resp = client.get("/api/projects")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 1
        assert data[0]["id"] == "chores"
        assert data[0]["task_count"] == 4

    def test_get(self, client):
        resp = client.get("/api/projects/chores")
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Chores"
        assert [g["name"] for g in data["groups"]] == ["Home", "Work"]
        parent = data["groups"][0]["tasks"][0]
        assert parent["lineNumber"] == 4
        assert parent["subtasks"][0]["parentContent"] == "Parent"

    def test_get_missing(self, client):
        resp = client.get("/api/projects/nope")
        assert resp.status_code == 404

    def test_create(self, client, data_dir):
        resp = client.post("/api/projects", json={"title": "Weekend"})
        assert resp.status_code == 201
        assert resp.json()["id"] == "weekend"
        assert (data_dir / "weekend.md").exists()

    def test_create_duplicate(self, client):
        resp = client.post("/api/projects", json={"title": "Chores"})
        assert resp.status_code == 400

    def test_raw_round_trip(self, client):
        resp = client.get("/api/projects/chores/raw")
        assert resp.json()["content"] == CHORES

        resp = client.put("/api/projects/chores/raw", json={"content": "# Chores\n- [x] all done\n"})
        assert resp.status_code == 200
        assert resp.json()["groups"][0]["tasks"][0]["status"] == "done"

    def test_raw_invalid(self, client):
        resp = client.put("/api/projects/chores/raw", json={"content": "- [ ] x #due:2025-02-30\n"})
        assert resp.status_code == 400
        assert client.get("/api/projects/chores/raw").json()["content"] == CHORES


class TestTasks:
    def test_list_flat(self, client):
        resp = client.get("/api/projects/chores/tasks")
        assert resp.status_code == 200
        data = resp.json()
        assert [t["content"] for t in data] == ["Parent", "Child A", "Water plants", "Report"]
        assert data[2]["dueStatus"] in ("overdue", "today", "upcoming")
        assert "subtasks" not in data[0]

    def test_list_status_filter(self, client):
        client.patch("/api/projects/chores/tasks/9", json={"status": "done"})
        data = client.get("/api/projects/chores/tasks", params={"status": "done"}).json()
        assert [t["content"] for t in data] == ["Report"]

    def test_add(self, client):
        resp = client.post(
            "/api/projects/chores/tasks",
            json={"content": "Slides", "due": "2025-12-05", "group_id": "chores-group-1"},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["lineNumber"] == 10
        assert data["dueDate"] == "2025-12-05"
        assert data["projectId"] == "chores"

    def test_add_subtask(self, client):
        resp = client.post("/api/projects/chores/tasks", json={"content": "Child B", "parent_line": 4})
        assert resp.status_code == 201
        assert resp.json()["parentId"] == "chores-4"

    def test_add_natural_language_date(self, client):
        resp = client.post("/api/projects/chores/tasks", json={"content": "Soon", "due": "tomorrow"})
        assert resp.status_code == 201
        assert len(resp.json()["dueDate"]) == 10

    def test_add_invalid(self, client):
        resp = client.post("/api/projects/chores/tasks", json={"content": ""})
        assert resp.status_code == 400
        resp = client.post("/api/projects/chores/tasks", json={"content": "x", "due": "whenever"})
        assert resp.status_code == 400
        resp = client.post("/api/projects/chores/tasks", json={"content": "x", "parent_line": 2})
        assert resp.status_code == 404

    def test_update(self, client):
        resp = client.patch("/api/projects/chores/tasks/4", json={"content": "Big job", "status": "doing"})
        assert resp.status_code == 200
        parent = resp.json()["groups"][0]["tasks"][0]
        assert parent["content"] == "Big job"
        assert parent["status"] == "doing"

    def test_update_clear_due(self, client):
        resp = client.patch("/api/projects/chores/tasks/6", json={"due": ""})
        task = resp.json()["groups"][0]["tasks"][1]
        assert "dueDate" not in task

    def test_update_done_on_recurring(self, client):
        resp = client.patch("/api/projects/chores/tasks/6", json={"status": "done"})
        home = resp.json()["groups"][0]["tasks"]
        assert [(t["status"], t.get("dueDate")) for t in home[1:]] == [
            ("done", "2025-12-01"),
            ("todo", "2025-12-08"),
        ]

    def test_update_missing_line(self, client):
        resp = client.patch("/api/projects/chores/tasks/99", json={"status": "done"})
        assert resp.status_code == 404

    def test_update_bad_status(self, client):
        resp = client.patch("/api/projects/chores/tasks/4", json={"status": "blocked"})
        assert resp.status_code == 400

    def test_delete(self, client):
        resp = client.delete("/api/projects/chores/tasks/4")
        assert resp.status_code == 200
        ids = [t["content"] for t in resp.json()["groups"][0]["tasks"]]
        assert ids == ["Water plants"]

    def test_move_to_parent(self, client):
        resp = client.post("/api/projects/chores/tasks/6/move", json={"parent_line": 4})
        assert resp.status_code == 200
        parent = resp.json()["groups"][0]["tasks"][0]
        assert [c["content"] for c in parent["subtasks"]] == ["Child A", "Water plants"]

    def test_move_to_root(self, client):
        resp = client.post("/api/projects/chores/tasks/5/move", json={})
        roots = resp.json()["groups"][0]["tasks"]
        assert [t["content"] for t in roots] == ["Parent", "Water plants", "Child A"]
        assert "parentId" not in roots[2]

    def test_move_to_group(self, client):
        resp = client.post("/api/projects/chores/tasks/4/move", json={"to_group_id": "chores-group-1"})
        work = resp.json()["groups"][1]["tasks"]
        assert [t["content"] for t in work] == ["Report", "Parent"]

    def test_move_invalid(self, client):
        resp = client.post("/api/projects/chores/tasks/4/move", json={"parent_line": 5})
        assert resp.status_code == 400

    def test_recur(self, client):
        resp = client.post("/api/projects/chores/tasks/6/recur")
        assert resp.status_code == 200
        assert resp.json()["dueDate"] == "2025-12-08"
        assert resp.json()["lineNumber"] == 7

    def test_recur_not_recurring(self, client):
        resp = client.post("/api/projects/chores/tasks/9/recur")
        assert resp.status_code == 400

    def test_reorder(self, client):
        resp = client.put(
            "/api/projects/chores/groups/chores-group-0/order", json={"line_numbers": [6, 4]}
        )
        assert resp.status_code == 200
        assert [t["content"] for t in resp.json()["groups"][0]["tasks"]] == ["Water plants", "Parent"]

    def test_reorder_missing_group(self, client):
        resp = client.put("/api/projects/chores/groups/nope/order", json={"line_numbers": []})
        assert resp.status_code == 404

    def test_add_group(self, client):
        resp = client.post("/api/projects/chores/groups", json={"name": "Garden"})
        assert resp.status_code == 201
        assert resp.json() == {"id": "chores-group-2", "name": "Garden", "tasks": []}
