"""Tests for models/snapshot.py and the flat-view helpers in models/task.py."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from mdtasks.engine.errors import InvalidFieldError, MalformedDateError
from mdtasks.models.snapshot import project_from_dict, project_to_dict, summarize_project, task_to_dict
from mdtasks.models.task import Task, refresh_parent_content
from mdtasks.parsers.document import parse_document

SNAPSHOT = {
    "id": "trip",
    "title": "Trip",
    "groups": [
        {
            "id": "trip-default-group",
            "name": "Default",
            "tasks": [
                {
                    "id": "trip-a1",
                    "content": "Pack",
                    "status": "doing",
                    "dueDate": "2025-07-01",
                    "subtasks": [
                        {"id": "trip-b2", "content": "Socks", "status": "done"},
                    ],
                },
                {
                    "id": "trip-c3",
                    "content": "Water plants",
                    "status": "todo",
                    "repeatFrequency": "custom",
                    "repeatIntervalDays": 3,
                },
            ],
        }
    ],
}


class TestTaskToDict:
    def test_optional_fields_omitted(self):
        d = task_to_dict(Task(content="a", id="x"))
        assert d == {"id": "x", "content": "a", "status": "todo", "subtasks": []}

    def test_file_mode_fields(self):
        task = parse_document("- [ ] a #due:2025-01-01\n", "p").all_tasks()[0]
        d = task_to_dict(task, include_subtasks=False)
        assert d["lineNumber"] == 1
        assert d["rawLine"] == "- [ ] a #due:2025-01-01"
        assert d["dueDate"] == "2025-01-01"
        assert "subtasks" not in d


class TestProjectFromDict:
    def test_load(self):
        project = project_from_dict(SNAPSHOT)
        pack = project.find_by_id("trip-a1")
        assert pack.status == "doing"
        assert pack.due_date == "2025-07-01"
        socks = project.find_by_id("trip-b2")
        assert socks.parent_id == "trip-a1"
        assert socks.parent_content == "Pack"
        assert project.find_by_id("trip-c3").repeat_interval_days == 3

    def test_round_trip(self):
        assert project_to_dict(project_from_dict(SNAPSHOT))["groups"][0]["tasks"][1] == {
            "id": "trip-c3",
            "content": "Water plants",
            "status": "todo",
            "repeatFrequency": "custom",
            "repeatIntervalDays": 3,
            "subtasks": [],
        }

    def test_stale_parent_content_recomputed(self):
        data = {
            "id": "p",
            "title": "P",
            "groups": [{
                "id": "g",
                "name": "G",
                "tasks": [{
                    "id": "1",
                    "content": "Real parent",
                    "subtasks": [{"id": "2", "content": "c", "parentContent": "Old name"}],
                }],
            }],
        }
        assert project_from_dict(data).find_by_id("2").parent_content == "Real parent"

    def test_invalid_status(self):
        data = {"id": "p", "groups": [{"id": "g", "name": "G", "tasks": [{"id": "1", "content": "a", "status": "x"}]}]}
        with pytest.raises(InvalidFieldError):
            project_from_dict(data)

    def test_invalid_date(self):
        data = {"id": "p", "groups": [{"id": "g", "name": "G", "tasks": [{"id": "1", "content": "a", "dueDate": "2025-13-01"}]}]}
        with pytest.raises(MalformedDateError):
            project_from_dict(data)


class TestSummaries:
    def test_summarize(self):
        summary = summarize_project(project_from_dict(SNAPSHOT))
        assert summary["task_count"] == 3
        assert summary["open_count"] == 2
        assert summary["groups"] == [{"id": "trip-default-group", "name": "Default"}]

    def test_refresh_parent_content(self):
        project = parse_document("- [ ] A\n    - [ ] B\n", "p")
        project.groups[0].tasks[0].content = "Renamed"
        refresh_parent_content(project)
        assert project.find_by_id("p-2").parent_content == "Renamed"
