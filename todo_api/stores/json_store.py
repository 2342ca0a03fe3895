import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from todo_api.errors import Conflict
from todo_api.models import Task, TaskDraft, TaskPatch, User
from todo_api.stores.base import CredentialStore, StoreError, TaskStore

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        raise StoreError(f"cannot read {path}: {exc}") from exc


def _write_json(path: Path, data: Any) -> None:
    """Write via a temp file in the same directory, then atomically replace."""
    try:
        fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp, str(path))
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
    except OSError as exc:
        raise StoreError(f"cannot write {path}: {exc}") from exc


class JsonCredentialStore(CredentialStore):
    """Users kept in a single ``users.json`` object keyed by user id."""

    def __init__(self, data_dir: Union[str, Path], **kwargs) -> None:
        super().__init__(**kwargs)
        self._dir = Path(data_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path = self._dir / "users.json"
        self._lock = threading.Lock()
        logger.info("JsonCredentialStore ready path=%s", self._path)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        data = _read_json(self._path, {})
        if not isinstance(data, dict):
            raise StoreError(f"{self._path} does not hold a JSON object")
        return data

    def _insert(self, user: User) -> None:
        with self._lock:
            users = self._load()
            for row in users.values():
                if row.get("username") == user.username or row.get("email") == user.email:
                    raise Conflict()
            users[user.id] = user.to_dict()
            _write_json(self._path, users)

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            row = self._load().get(str(user_id))
        return User.from_dict(row) if row else None

    def find_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            users = self._load()
        for row in users.values():
            if row.get("username") == username:
                return User.from_dict(row)
        return None


class JsonTaskStore(TaskStore):
    """One JSON list per user under ``<data_dir>/tasks/<user_id>.json``.

    Each user's file has its own lock, so different users never contend.
    Tasks are stored in insertion order and listed newest first.
    """

    def __init__(self, data_dir: Union[str, Path], **kwargs) -> None:
        super().__init__(**kwargs)
        self._dir = Path(data_dir) / "tasks"
        self._dir.mkdir(parents=True, exist_ok=True)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        logger.info("JsonTaskStore ready dir=%s", self._dir)

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _path_for(self, user_id: str) -> Path:
        if not _SAFE_ID.match(user_id):
            raise StoreError(f"unsafe user id for file name: {user_id!r}")
        return self._dir / f"{user_id}.json"

    def _load(self, path: Path) -> List[Dict[str, Any]]:
        data = _read_json(path, [])
        if not isinstance(data, list):
            raise StoreError(f"{path} does not hold a JSON list")
        return data

    def list(self, user_id: str) -> List[Task]:
        user_id = str(user_id)
        path = self._path_for(user_id)
        with self._lock_for(user_id):
            rows = self._load(path)
        tasks = [Task.from_dict(r) for r in reversed(rows)]
        # Stable sort keeps later-inserted first among equal timestamps.
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    def create(self, user_id: str, draft: TaskDraft) -> Task:
        user_id = str(user_id)
        path = self._path_for(user_id)
        task = draft.build(user_id, self._clock())
        with self._lock_for(user_id):
            rows = self._load(path)
            rows.append(task.to_dict())
            _write_json(path, rows)
        return task

    def update(self, user_id: str, task_id: str, patch: TaskPatch) -> Optional[Task]:
        user_id = str(user_id)
        path = self._path_for(user_id)
        with self._lock_for(user_id):
            rows = self._load(path)
            for i, row in enumerate(rows):
                if row.get("id") == task_id:
                    task = Task.from_dict(row).apply(patch, self._clock())
                    rows[i] = task.to_dict()
                    _write_json(path, rows)
                    return task
        return None

    def delete(self, user_id: str, task_id: str) -> bool:
        user_id = str(user_id)
        path = self._path_for(user_id)
        with self._lock_for(user_id):
            rows = self._load(path)
            kept = [r for r in rows if r.get("id") != task_id]
            if len(kept) == len(rows):
                return False
            _write_json(path, kept)
        return True
