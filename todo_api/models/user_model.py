import uuid
from dataclasses import dataclass, field
from typing import Any, Dict

from todo_api.models.task_model import utcnow_iso


def new_user_id() -> str:
    return uuid.uuid4().hex


@dataclass
class User:
    username: str
    email: str
    password_hash: str
    created_at: str = field(default_factory=utcnow_iso)
    id: str = field(default_factory=new_user_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
        }

    def to_public(self) -> Dict[str, Any]:
        # Never expose password_hash
        return {"id": self.id, "username": self.username}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            username=data["username"],
            email=data["email"],
            password_hash=data["password_hash"],
            created_at=str(data.get("created_at") or ""),
        )
