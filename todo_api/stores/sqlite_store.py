import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional, Union

from todo_api.errors import Conflict
from todo_api.models import Task, TaskDraft, TaskPatch, User
from todo_api.stores.base import CredentialStore, StoreError, TaskStore

logger = logging.getLogger(__name__)

_TASK_COLUMNS = (
    "id, user_id, text, completed, priority, category, deadline, created_at, updated_at"
)


class _SQLiteDatabase:
    """Shared connection factory for the users and tasks tables.

    Every operation opens its own connection, so the stores are thread-safe.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.path = Path(db_path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextlib.contextmanager
    def connect(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.path), timeout=30.0, isolation_level=None)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with contextlib.suppress(sqlite3.Error):
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            raise StoreError(f"sqlite failure on {self.path}: {exc}") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect(immediate=True) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT UNIQUE NOT NULL,
                    email TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    priority TEXT NOT NULL DEFAULT 'medium',
                    category TEXT NOT NULL DEFAULT 'personal',
                    deadline TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
                )
                """
            )

            # Older databases may predate some columns.
            cols = {row["name"] for row in conn.execute("PRAGMA table_info(tasks)")}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                conn.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SQLite migration: added tasks.%s", name)

            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("category", "TEXT NOT NULL DEFAULT 'personal'")
            add_col("deadline", "TEXT")
            add_col("updated_at", "TEXT NOT NULL DEFAULT ''")

            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user_id ON tasks(user_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_deadline ON tasks(deadline)")

            for row in conn.execute("PRAGMA table_info(tasks)"):
                logger.debug(
                    "tasks.%s %s%s",
                    row["name"],
                    row["type"],
                    " NOT NULL" if row["notnull"] else "",
                )


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        text=row["text"],
        completed=bool(row["completed"]),
        priority=row["priority"],
        category=row["category"],
        deadline=row["deadline"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SQLiteCredentialStore(CredentialStore):
    def __init__(self, db: _SQLiteDatabase, **kwargs) -> None:
        super().__init__(**kwargs)
        self._db = db

    def _insert(self, user: User) -> None:
        try:
            with self._db.connect(immediate=True) as conn:
                conn.execute(
                    "INSERT INTO users (id, username, email, password_hash, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (user.id, user.username, user.email, user.password_hash, user.created_at),
                )
        except sqlite3.IntegrityError as exc:
            logger.info("register rejected username=%s: %s", user.username, exc)
            raise Conflict() from exc

    def _find_one(self, column: str, value: str) -> Optional[User]:
        with self._db.connect() as conn:
            row = conn.execute(
                f"SELECT id, username, email, password_hash, created_at FROM users WHERE {column} = ?",
                (value,),
            ).fetchone()
        return User.from_dict(dict(row)) if row else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._find_one("id", str(user_id))

    def find_by_username(self, username: str) -> Optional[User]:
        return self._find_one("username", username)


class SQLiteTaskStore(TaskStore):
    def __init__(self, db: _SQLiteDatabase, **kwargs) -> None:
        super().__init__(**kwargs)
        self._db = db

    def list(self, user_id: str) -> List[Task]:
        with self._db.connect() as conn:
            rows = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (str(user_id),),
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def create(self, user_id: str, draft: TaskDraft) -> Task:
        task = draft.build(str(user_id), self._clock())
        with self._db.connect(immediate=True) as conn:
            conn.execute(
                f"INSERT INTO tasks ({_TASK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    task.id,
                    task.user_id,
                    task.text,
                    int(task.completed),
                    task.priority,
                    task.category,
                    task.deadline,
                    task.created_at,
                    task.updated_at,
                ),
            )
        return task

    def update(self, user_id: str, task_id: str, patch: TaskPatch) -> Optional[Task]:
        with self._db.connect(immediate=True) as conn:
            row = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ? AND user_id = ?",
                (task_id, str(user_id)),
            ).fetchone()
            if row is None:
                return None
            task = _row_to_task(row).apply(patch, self._clock())
            conn.execute(
                "UPDATE tasks SET text = ?, completed = ?, priority = ?, category = ?, "
                "deadline = ?, updated_at = ? WHERE id = ? AND user_id = ?",
                (
                    task.text,
                    int(task.completed),
                    task.priority,
                    task.category,
                    task.deadline,
                    task.updated_at,
                    task.id,
                    task.user_id,
                ),
            )
        return task

    def delete(self, user_id: str, task_id: str) -> bool:
        with self._db.connect(immediate=True) as conn:
            cur = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, str(user_id))
            )
            return cur.rowcount > 0


def open_sqlite_stores(db_path: Union[str, Path], password_hash_method: str = "scrypt", clock=None):
    db = _SQLiteDatabase(db_path)
    kwargs = {"clock": clock} if clock else {}
    users = SQLiteCredentialStore(db, password_hash_method=password_hash_method, **kwargs)
    tasks = SQLiteTaskStore(db, **kwargs)
    logger.info("SQLite stores ready db=%s", db.path)
    return users, tasks
