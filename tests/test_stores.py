# tests/test_stores.py

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from todo_api.errors import Conflict, InvalidInput
from todo_api.models import TaskDraft, TaskPatch
from todo_api.stores import StoreError, build_stores

from .fakes import make_config


def test_register_and_verify(stores) -> None:
    user = stores.users.register("alice", "alice@example.com", "pw")
    assert user.id
    assert user.password_hash != "pw"

    assert stores.users.verify("alice", "pw").id == user.id
    assert stores.users.verify("alice", "wrong") is None
    assert stores.users.verify("nobody", "pw") is None

    found = stores.users.find_by_id(user.id)
    assert found is not None
    assert found.username == "alice"
    assert stores.users.find_by_id("missing") is None


def test_register_conflicts_on_username_or_email(stores) -> None:
    stores.users.register("alice", "alice@example.com", "pw")
    with pytest.raises(Conflict):
        stores.users.register("alice", "other@example.com", "pw")
    with pytest.raises(Conflict):
        stores.users.register("bob", "alice@example.com", "pw")
    assert stores.users.register("bob", "bob@example.com", "pw").username == "bob"


@pytest.mark.parametrize(
    "username, email, password",
    [("", "a@example.com", "pw"), ("a", None, "pw"), ("a", "a@example.com", ""), ("  ", "x", "y")],
)
def test_register_requires_all_fields(stores, username, email, password) -> None:
    with pytest.raises(InvalidInput):
        stores.users.register(username, email, password)


def test_create_defaults_and_list_round_trip(stores) -> None:
    user = stores.users.register("alice", "alice@example.com", "pw")
    task = stores.tasks.create(user.id, TaskDraft.from_payload({"text": "Buy milk"}))

    assert task.id.startswith("task_")
    assert task.priority == "medium"
    assert task.category == "personal"
    assert task.deadline is None
    assert task.completed is False
    assert task.created_at == task.updated_at

    assert stores.tasks.list(user.id) == [task]


def test_list_is_newest_first(stores) -> None:
    user = stores.users.register("alice", "alice@example.com", "pw")
    first = stores.tasks.create(user.id, TaskDraft.from_payload({"text": "first"}))
    second = stores.tasks.create(user.id, TaskDraft.from_payload({"text": "second"}))
    third = stores.tasks.create(user.id, TaskDraft.from_payload({"text": "third"}))
    assert [t.id for t in stores.tasks.list(user.id)] == [third.id, second.id, first.id]


def test_update_is_a_partial_merge(stores) -> None:
    user = stores.users.register("alice", "alice@example.com", "pw")
    task = stores.tasks.create(
        user.id,
        TaskDraft.from_payload(
            {"text": "Report", "priority": "high", "category": "work", "deadline": "2024-06-01"}
        ),
    )

    updated = stores.tasks.update(user.id, task.id, TaskPatch.from_payload({"completed": "true"}))
    assert updated is not None
    assert updated.completed is True
    assert updated.text == "Report"
    assert updated.priority == "high"
    assert updated.category == "work"
    assert updated.deadline == "2024-06-01"
    assert updated.updated_at > task.updated_at

    (listed,) = stores.tasks.list(user.id)
    assert listed.completed is True
    assert listed.deadline == "2024-06-01"

    cleared = stores.tasks.update(user.id, task.id, TaskPatch.from_payload({"deadline": None}))
    assert cleared.deadline is None


def test_other_users_tasks_are_invisible(stores) -> None:
    alice = stores.users.register("alice", "alice@example.com", "pw")
    bob = stores.users.register("bob", "bob@example.com", "pw")
    bobs = stores.tasks.create(bob.id, TaskDraft.from_payload({"text": "bob's"}))

    assert stores.tasks.list(alice.id) == []
    assert stores.tasks.update(alice.id, bobs.id, TaskPatch.from_payload({"text": "x"})) is None
    assert stores.tasks.delete(alice.id, bobs.id) is False

    (still_there,) = stores.tasks.list(bob.id)
    assert still_there.text == "bob's"


def test_delete_twice(stores) -> None:
    user = stores.users.register("alice", "alice@example.com", "pw")
    task = stores.tasks.create(user.id, TaskDraft.from_payload({"text": "x"}))
    assert stores.tasks.delete(user.id, task.id) is True
    assert stores.tasks.delete(user.id, task.id) is False
    assert stores.tasks.update(user.id, task.id, TaskPatch()) is None


@pytest.mark.parametrize("backend", ["json", "sqlite"])
def test_concurrent_writes_for_different_users_do_not_interfere(stores, backend) -> None:
    users = [stores.users.register(f"u{i}", f"u{i}@example.com", "pw") for i in range(4)]
    per_user = 25

    def work(args):
        user, n = args
        stores.tasks.create(user.id, TaskDraft.from_payload({"text": f"{user.username}-{n}"}))

    jobs = [(u, n) for n in range(per_user) for u in users]
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, jobs))

    for user in users:
        tasks = stores.tasks.list(user.id)
        assert len(tasks) == per_user
        assert {t.user_id for t in tasks} == {user.id}
        assert {t.text for t in tasks} == {f"{user.username}-{n}" for n in range(per_user)}


def test_json_store_files_are_partitioned_by_user(tmp_path: Path) -> None:
    bundle = build_stores(make_config(tmp_path, "json"))
    user = bundle.users.register("alice", "alice@example.com", "pw")
    bundle.tasks.create(user.id, TaskDraft.from_payload({"text": "x"}))
    data_dir = tmp_path / "data"
    assert (data_dir / "users.json").is_file()
    assert (data_dir / "tasks" / f"{user.id}.json").is_file()
    users = json.loads((data_dir / "users.json").read_text(encoding="utf-8"))
    assert users[user.id]["password_hash"] != "pw"


def test_json_store_reports_corrupt_files(tmp_path: Path) -> None:
    bundle = build_stores(make_config(tmp_path, "json"))
    (tmp_path / "data" / "users.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        bundle.users.find_by_username("alice")


def test_sqlite_store_survives_reopen(tmp_path: Path) -> None:
    config = make_config(tmp_path, "sqlite")
    first = build_stores(config)
    user = first.users.register("alice", "alice@example.com", "pw")
    task = first.tasks.create(user.id, TaskDraft.from_payload({"text": "persist me"}))

    second = build_stores(config)
    assert second.users.verify("alice", "pw").id == user.id
    assert [t.id for t in second.tasks.list(user.id)] == [task.id]


def test_unknown_backend_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        build_stores(make_config(tmp_path, "redis"))


@pytest.mark.parametrize(
    "username, email, password",
    [(["x"], "x@example.com", "pw"), ("x", {"e": 1}, "pw"), ("x", "x@example.com", 5), (True, "x", "y")],
)
def test_register_rejects_non_string_fields(stores, username, email, password) -> None:
    with pytest.raises(InvalidInput):
        stores.users.register(username, email, password)
    assert stores.users.find_by_username("['x']") is None
