import re
import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from todo_api.errors import InvalidInput

PRIORITIES = ("low", "medium", "high")
CATEGORIES = ("personal", "work", "shopping", "health")
DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "personal"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Sentinel for "field not present in the payload"
_MISSING = object()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_task_id() -> str:
    return f"task_{uuid.uuid4().hex}"


def normalize_text(value) -> str:
    """Strip a text field. Numbers are accepted; 0 counts as empty."""
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidInput("Task text must be a string")
    if not value:
        return ""
    return str(value).strip()


def normalize_priority(value) -> str:
    value = str(value) if value is not None else ""
    return value if value in PRIORITIES else DEFAULT_PRIORITY


def normalize_category(value) -> str:
    value = str(value) if value is not None else ""
    return value if value in CATEGORIES else DEFAULT_CATEGORY


def normalize_deadline(value) -> Optional[str]:
    """Return an ISO ``YYYY-MM-DD`` string, or None when the input is unusable.

    A bare date must be a real calendar day. A full ISO datetime is reduced to
    its date part. Anything else is dropped silently.
    """
    if value is None or value == "":
        return None
    value = str(value).strip()
    if _DATE_RE.match(value):
        try:
            return date.fromisoformat(value).isoformat()
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


@dataclass
class Task:
    user_id: str
    text: str
    priority: str = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    deadline: Optional[str] = None
    completed: bool = False
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)
    id: str = field(default_factory=new_task_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            text=str(data.get("text") or ""),
            priority=data.get("priority") or DEFAULT_PRIORITY,
            category=data.get("category") or DEFAULT_CATEGORY,
            deadline=data.get("deadline") or None,
            completed=bool(data.get("completed")),
            created_at=str(data.get("created_at") or ""),
            updated_at=str(data.get("updated_at") or ""),
        )

    def apply(self, patch: "TaskPatch", now: str) -> "Task":
        """Return a copy with the patch's fields merged in and updated_at set."""
        return replace(self, updated_at=now, **patch.changes())


@dataclass
class TaskDraft:
    """Validated body of a create request."""

    text: str
    priority: str = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    deadline: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TaskDraft":
        text = normalize_text(payload.get("text"))
        if not text:
            raise InvalidInput("Task text is required")
        return cls(
            text=text,
            priority=normalize_priority(payload.get("priority")),
            category=normalize_category(payload.get("category")),
            deadline=normalize_deadline(payload.get("deadline")),
        )

    def build(self, user_id: str, now: str) -> Task:
        return Task(
            user_id=user_id,
            text=self.text,
            priority=self.priority,
            category=self.category,
            deadline=self.deadline,
            completed=False,
            created_at=now,
            updated_at=now,
        )


@dataclass
class TaskPatch:
    """Validated body of an update request.

    Fields left as None were absent from the payload, except ``deadline``
    where None is a real value (clear it) and absence is tracked separately.
    """

    text: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    completed: Optional[bool] = None
    deadline: Any = _MISSING

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TaskPatch":
        patch = cls()
        if "text" in payload:
            text = normalize_text(payload["text"])
            if not text:
                raise InvalidInput("Task text cannot be empty")
            patch.text = text
        if "priority" in payload:
            patch.priority = normalize_priority(payload["priority"])
        if "category" in payload:
            patch.category = normalize_category(payload["category"])
        if "deadline" in payload:
            patch.deadline = normalize_deadline(payload["deadline"])
        if "completed" in payload:
            patch.completed = bool(payload["completed"])
        return patch

    def changes(self) -> Dict[str, Any]:
        updates = {}
        for name in ("text", "priority", "category", "completed"):
            value = getattr(self, name)
            if value is not None:
                updates[name] = value
        if self.deadline is not _MISSING:
            updates["deadline"] = self.deadline
        return updates
