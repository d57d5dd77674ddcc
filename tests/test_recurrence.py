"""
Tests for engine/recurrence.py.

Covers:
- next_occurrence date math (daily, weekly, monthly clamping, custom)
- handle_recurring placement, copied fields and errors
- update_with_rollover
"""

import sys
from pathlib import Path

# Add src to path so imports work without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from mdtasks.engine.errors import InvalidFieldError, MalformedDateError, NotFoundError, NotRecurringError
from mdtasks.engine.recurrence import handle_recurring, next_occurrence, update_with_rollover
from mdtasks.parsers.document import parse_document


def _single(line: str):
    """Parse a one-task document; the task id is "r-1"."""
    return parse_document(line + "\n", "r")


# ---------------------------------------------------------------------------
# next_occurrence
# ---------------------------------------------------------------------------

class TestNextOccurrence:
    @pytest.mark.parametrize(
        "current, freq, interval, expected",
        [
            ("2025-12-01", "daily", None, "2025-12-02"),
            ("2025-12-31", "daily", None, "2026-01-01"),
            ("2025-12-01", "weekly", None, "2025-12-08"),
            ("2025-12-01", "monthly", None, "2026-01-01"),
            ("2025-01-31", "monthly", None, "2025-02-28"),
            ("2024-01-31", "monthly", None, "2024-02-29"),
            ("2025-03-31", "monthly", None, "2025-04-30"),
            ("2025-12-25", "custom", 10, "2026-01-04"),
            ("2024-02-28", "custom", 1, "2024-02-29"),
        ],
    )
    def test_math(self, current, freq, interval, expected):
        assert next_occurrence(current, freq, interval) == expected

    def test_invalid_date(self):
        with pytest.raises(MalformedDateError):
            next_occurrence("2025-02-30", "daily")

    def test_custom_without_interval(self):
        with pytest.raises(InvalidFieldError):
            next_occurrence("2025-01-01", "custom")

    def test_unknown_frequency(self):
        with pytest.raises(InvalidFieldError):
            next_occurrence("2025-01-01", "yearly")


# ---------------------------------------------------------------------------
# handle_recurring
# ---------------------------------------------------------------------------

class TestHandleRecurring:
    @pytest.mark.parametrize(
        "line, expected_due",
        [
            ("- [ ] Daily #due:2025-12-01 #repeat:daily", "2025-12-02"),
            ("- [ ] Weekly #due:2025-12-01 #repeat:weekly", "2025-12-08"),
            ("- [ ] Monthly #due:2025-12-01 #repeat:monthly", "2026-01-01"),
            ("- [ ] Month end #due:2025-01-31 #repeat:monthly", "2025-02-28"),
            ("- [ ] Leap #due:2024-01-31 #repeat:monthly", "2024-02-29"),
        ],
    )
    def test_due_advanced(self, line, expected_due):
        project, next_task = handle_recurring(_single(line), "r-1")
        assert next_task.due_date == expected_due

    def test_original_kept_as_done(self):
        original = _single("- [ ] Water plants #due:2025-12-01 #repeat:weekly")
        project, next_task = handle_recurring(original, "r-1")

        roots = project.groups[0].tasks
        assert [t.id for t in roots] == ["r-1", next_task.id]
        assert roots[0].status == "done"
        assert roots[0].due_date == "2025-12-01"
        assert next_task.status == "todo"
        assert next_task.content == "Water plants"
        assert next_task.repeat_frequency == "weekly"
        assert next_task.id != "r-1"
        # input snapshot untouched
        assert original.groups[0].tasks[0].status == "todo"
        assert len(original.groups[0].tasks) == 1

    def test_custom_interval_copied(self):
        project, next_task = handle_recurring(
            _single("- [ ] Filter #due:2025-12-25 #repeat:every_10_days"), "r-1"
        )
        assert next_task.repeat_frequency == "custom"
        assert next_task.repeat_interval_days == 10
        assert next_task.due_date == "2026-01-04"

    def test_both_dates_advanced(self):
        project, next_task = handle_recurring(
            _single("- [ ] Rent #do:2025-01-28 #due:2025-01-31 #repeat:monthly"), "r-1"
        )
        assert next_task.scheduled_date == "2025-02-28"
        assert next_task.due_date == "2025-02-28"

    def test_scheduled_only(self):
        project, next_task = handle_recurring(_single("- [ ] Gym #do:2025-06-02 #repeat:daily"), "r-1")
        assert next_task.scheduled_date == "2025-06-03"
        assert next_task.due_date is None

    def test_no_dates_still_recurs(self):
        project, next_task = handle_recurring(_single("- [ ] Stretch #repeat:daily"), "r-1")
        assert next_task.due_date is None
        assert next_task.scheduled_date is None
        assert len(project.all_tasks()) == 2

    def test_subtask_sibling_under_same_parent(self):
        text = "- [ ] Routine\n    - [ ] Brush teeth #repeat:daily\n    - [ ] Floss\n"
        project, next_task = handle_recurring(parse_document(text, "r"), "r-2")
        parent = project.find_by_id("r-1")
        assert [c.content for c in parent.subtasks] == ["Brush teeth", "Floss", "Brush teeth"]
        assert parent.subtasks[0].status == "done"
        assert next_task.parent_id == "r-1"
        assert next_task.parent_content == "Routine"

    def test_root_in_second_group(self):
        text = "### A\n- [ ] a\n### B\n- [ ] b #repeat:weekly\n- [ ] c\n"
        project, next_task = handle_recurring(parse_document(text, "r"), "r-4")
        assert [t.content for t in project.groups[1].tasks] == ["b", "c", "b"]
        assert next_task.parent_id is None

    def test_not_recurring(self):
        with pytest.raises(NotRecurringError):
            handle_recurring(_single("- [ ] Once"), "r-1")

    def test_missing(self):
        with pytest.raises(NotFoundError):
            handle_recurring(_single("- [ ] Once"), "r-9")


# ---------------------------------------------------------------------------
# update_with_rollover
# ---------------------------------------------------------------------------

class TestUpdateWithRollover:
    def test_done_on_recurring_rolls_over(self):
        project = update_with_rollover(
            _single("- [ ] Daily #due:2025-12-01 #repeat:daily"), "r-1", status="done"
        )
        tasks = project.all_tasks()
        assert [(t.status, t.due_date) for t in tasks] == [
            ("done", "2025-12-01"),
            ("todo", "2025-12-02"),
        ]

    def test_done_on_plain_task(self):
        project = update_with_rollover(_single("- [ ] Once"), "r-1", status="done")
        assert [t.status for t in project.all_tasks()] == ["done"]

    def test_already_done_not_rolled_again(self):
        project = update_with_rollover(
            _single("- [x] Daily #due:2025-12-01 #repeat:daily"), "r-1", status="done"
        )
        assert len(project.all_tasks()) == 1

    def test_other_changes_applied_first(self):
        project = update_with_rollover(
            _single("- [ ] Daily #due:2025-12-01 #repeat:daily"),
            "r-1",
            status="done",
            due_date="2025-12-10",
        )
        assert [t.due_date for t in project.all_tasks()] == ["2025-12-10", "2025-12-11"]

    def test_becoming_recurring_while_done(self):
        project = update_with_rollover(
            _single("- [ ] Once #due:2025-12-01"), "r-1", status="done", repeat_frequency="weekly"
        )
        assert [t.due_date for t in project.all_tasks()] == ["2025-12-01", "2025-12-08"]

    def test_missing(self):
        with pytest.raises(NotFoundError):
            update_with_rollover(_single("- [ ] Once"), "r-2", status="done")
