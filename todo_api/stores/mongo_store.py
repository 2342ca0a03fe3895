import logging
import time
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from todo_api.errors import Conflict
from todo_api.models import Task, TaskDraft, TaskPatch, User
from todo_api.stores.base import CredentialStore, StoreError, TaskStore

logger = logging.getLogger(__name__)


def serialize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Map a stored document back to model field names (``_id`` -> ``id``)."""
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return data


class MongoCredentialStore(CredentialStore):
    def __init__(self, db, **kwargs) -> None:
        super().__init__(**kwargs)
        self._users = db["users"]
        try:
            self._users.create_index([("username", ASCENDING)], unique=True)
            self._users.create_index([("email", ASCENDING)], unique=True)
        except PyMongoError as exc:
            raise StoreError(f"cannot prepare users collection: {exc}") from exc

    def _insert(self, user: User) -> None:
        doc = user.to_dict()
        doc["_id"] = doc.pop("id")
        try:
            existing = self._users.find_one(
                {"$or": [{"username": user.username}, {"email": user.email}]}
            )
            if existing is not None:
                raise Conflict()
            self._users.insert_one(doc)
        except DuplicateKeyError as exc:
            raise Conflict() from exc
        except PyMongoError as exc:
            raise StoreError(f"users insert failed: {exc}") from exc

    def _find_one(self, query: Dict[str, Any]) -> Optional[User]:
        try:
            doc = self._users.find_one(query)
        except PyMongoError as exc:
            raise StoreError(f"users lookup failed: {exc}") from exc
        return User.from_dict(serialize_doc(doc)) if doc else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._find_one({"_id": str(user_id)})

    def find_by_username(self, username: str) -> Optional[User]:
        return self._find_one({"username": username})


class MongoTaskStore(TaskStore):
    def __init__(self, db, client: Optional[MongoClient] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._tasks = db["tasks"]
        self._client = client
        try:
            self._tasks.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        except PyMongoError as exc:
            raise StoreError(f"cannot prepare tasks collection: {exc}") from exc

    def list(self, user_id: str) -> List[Task]:
        try:
            docs = list(
                self._tasks.find({"user_id": str(user_id)}).sort(
                    [("created_at", DESCENDING), ("seq", DESCENDING)]
                )
            )
        except PyMongoError as exc:
            raise StoreError(f"tasks query failed: {exc}") from exc
        return [Task.from_dict(serialize_doc(d)) for d in docs]

    def create(self, user_id: str, draft: TaskDraft) -> Task:
        task = draft.build(str(user_id), self._clock())
        doc = task.to_dict()
        doc["_id"] = doc.pop("id")
        try:
            # seq breaks created_at ties in insertion order
            doc["seq"] = time.time_ns()
            self._tasks.insert_one(doc)
        except PyMongoError as exc:
            raise StoreError(f"tasks insert failed: {exc}") from exc
        return task

    def update(self, user_id: str, task_id: str, patch: TaskPatch) -> Optional[Task]:
        updates = patch.changes()
        updates["updated_at"] = self._clock()
        try:
            doc = self._tasks.find_one_and_update(
                {"_id": task_id, "user_id": str(user_id)},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreError(f"tasks update failed: {exc}") from exc
        return Task.from_dict(serialize_doc(doc)) if doc else None

    def delete(self, user_id: str, task_id: str) -> bool:
        try:
            res = self._tasks.delete_one({"_id": task_id, "user_id": str(user_id)})
        except PyMongoError as exc:
            raise StoreError(f"tasks delete failed: {exc}") from exc
        return res.deleted_count > 0

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


def open_mongo_stores(
    uri: str,
    db_name: str,
    client: Optional[MongoClient] = None,
    password_hash_method: str = "scrypt",
    clock=None,
):
    owns_client = client is None
    if owns_client:
        client = MongoClient(uri, serverSelectionTimeoutMS=2000)
    db = client[db_name]
    kwargs = {"clock": clock} if clock else {}
    users = MongoCredentialStore(db, password_hash_method=password_hash_method, **kwargs)
    tasks = MongoTaskStore(db, client=client if owns_client else None, **kwargs)
    logger.info("Mongo stores ready db=%s", db_name)
    return users, tasks
