from todo_api.models.task_model import Task, TaskDraft, TaskPatch
from todo_api.models.user_model import User

__all__ = ["Task", "TaskDraft", "TaskPatch", "User"]
