import abc
from dataclasses import dataclass
from typing import Callable, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from todo_api.errors import InvalidInput, ServerError
from todo_api.models import Task, TaskDraft, TaskPatch, User
from todo_api.models.task_model import utcnow_iso

Clock = Callable[[], str]


class StoreError(ServerError):
    """A backend failed (I/O, driver, corrupt data)."""


class CredentialStore(abc.ABC):
    def __init__(self, password_hash_method: str = "scrypt", clock: Clock = utcnow_iso) -> None:
        self._hash_method = password_hash_method
        self._clock = clock

    def register(self, username, email, password) -> User:
        """Create a user. Raises InvalidInput or Conflict."""
        for value in (username, email, password):
            if value is not None and not isinstance(value, str):
                raise InvalidInput("All fields must be strings")
        username = (username or "").strip()
        email = (email or "").strip()
        password = password or ""
        if not username or not email or not password:
            raise InvalidInput("All fields are required")

        user = User(
            username=username,
            email=email,
            password_hash=generate_password_hash(password, method=self._hash_method),
            created_at=self._clock(),
        )
        self._insert(user)
        return user

    def verify(self, username, password) -> Optional[User]:
        """Return the user when the password matches, else None."""
        if not username or not password:
            return None
        user = self.find_by_username(str(username))
        if user is None or not check_password_hash(user.password_hash, str(password)):
            return None
        return user

    @abc.abstractmethod
    def _insert(self, user: User) -> None:
        """Persist a new user. Raises Conflict on duplicate username/email."""

    @abc.abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]: ...

    @abc.abstractmethod
    def find_by_username(self, username: str) -> Optional[User]: ...

    def close(self) -> None:
        return


class TaskStore(abc.ABC):
    """Owner-scoped task persistence.

    Every operation takes the owner's user id; a task id that belongs to
    another user behaves exactly like a missing one.
    """

    def __init__(self, clock: Clock = utcnow_iso) -> None:
        self._clock = clock

    @abc.abstractmethod
    def list(self, user_id: str) -> List[Task]:
        """Tasks of one user, newest first."""

    @abc.abstractmethod
    def create(self, user_id: str, draft: TaskDraft) -> Task: ...

    @abc.abstractmethod
    def update(self, user_id: str, task_id: str, patch: TaskPatch) -> Optional[Task]: ...

    @abc.abstractmethod
    def delete(self, user_id: str, task_id: str) -> bool: ...

    def close(self) -> None:
        return


@dataclass
class Stores:
    backend: str
    users: CredentialStore
    tasks: TaskStore

    def close(self) -> None:
        self.tasks.close()
        self.users.close()
