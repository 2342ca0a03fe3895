# tests/test_task_model.py

import pytest

from todo_api.errors import InvalidInput
from todo_api.models import Task, TaskDraft, TaskPatch
from todo_api.models.task_model import normalize_deadline


def test_draft_defaults() -> None:
    draft = TaskDraft.from_payload({"text": "  Buy milk  "})
    assert draft.text == "Buy milk"
    assert draft.priority == "medium"
    assert draft.category == "personal"
    assert draft.deadline is None


def test_draft_invalid_enums_fall_back_to_defaults() -> None:
    draft = TaskDraft.from_payload({"text": "x", "priority": "urgent", "category": 42})
    assert draft.priority == "medium"
    assert draft.category == "personal"


def test_draft_keeps_valid_enums() -> None:
    draft = TaskDraft.from_payload({"text": "x", "priority": "high", "category": "work"})
    assert (draft.priority, draft.category) == ("high", "work")


@pytest.mark.parametrize("text", [None, "", "   ", "\n"])
def test_draft_requires_text(text) -> None:
    with pytest.raises(InvalidInput):
        TaskDraft.from_payload({"text": text})


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-05-01", "2024-05-01"),
        ("2024-05-01T10:30:00", "2024-05-01"),
        ("2024-05-01T10:30:00Z", "2024-05-01"),
        ("2024-02-30", None),
        ("not-a-date", None),
        ("", None),
        (None, None),
        (12345, None),
    ],
)
def test_normalize_deadline(raw, expected) -> None:
    assert normalize_deadline(raw) == expected


def test_patch_only_carries_provided_fields() -> None:
    patch = TaskPatch.from_payload({"completed": "true"})
    assert patch.changes() == {"completed": True}


def test_patch_explicit_null_deadline_clears_it() -> None:
    assert TaskPatch.from_payload({"deadline": None}).changes() == {"deadline": None}
    assert TaskPatch.from_payload({"deadline": "garbage"}).changes() == {"deadline": None}


def test_patch_rejects_blank_text() -> None:
    with pytest.raises(InvalidInput):
        TaskPatch.from_payload({"text": "   "})


def test_apply_merges_and_restamps() -> None:
    task = Task(
        user_id="u1",
        text="old",
        priority="high",
        created_at="2024-01-01T00:00:00+00:00",
        updated_at="2024-01-01T00:00:00+00:00",
    )
    updated = task.apply(TaskPatch.from_payload({"text": "new", "completed": 1}), "later")
    assert updated.text == "new"
    assert updated.completed is True
    assert updated.priority == "high"
    assert updated.id == task.id
    assert updated.created_at == task.created_at
    assert updated.updated_at == "later"


@pytest.mark.parametrize("text", [{"a": 1}, ["x"], True, False])
def test_non_string_text_is_rejected(text) -> None:
    with pytest.raises(InvalidInput):
        TaskDraft.from_payload({"text": text})
    with pytest.raises(InvalidInput):
        TaskPatch.from_payload({"text": text})


def test_numeric_text_is_accepted_but_zero_is_empty() -> None:
    assert TaskDraft.from_payload({"text": 42}).text == "42"
    with pytest.raises(InvalidInput):
        TaskDraft.from_payload({"text": 0})
