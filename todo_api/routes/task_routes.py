import logging

from flask import Blueprint, jsonify

from todo_api.errors import NotFound
from todo_api.models import TaskDraft, TaskPatch
from todo_api.utils.auth import auth_required, get_current_user_id
from todo_api.utils.db import get_stores
from todo_api.utils.payload import get_payload

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks", __name__)


@tasks_bp.get("")
@auth_required
def list_tasks():
    user_id = get_current_user_id()
    tasks = get_stores().tasks.list(user_id)
    return jsonify([t.to_dict() for t in tasks]), 200


@tasks_bp.post("")
@auth_required
def create_task():
    user_id = get_current_user_id()
    draft = TaskDraft.from_payload(get_payload())
    task = get_stores().tasks.create(user_id, draft)
    logger.info("Task created id=%s user=%s", task.id, user_id)
    return jsonify(id=task.id, message="Task created successfully", task=task.to_dict()), 201


@tasks_bp.put("/<task_id>")
@auth_required
def update_task(task_id):
    user_id = get_current_user_id()
    patch = TaskPatch.from_payload(get_payload())
    task = get_stores().tasks.update(user_id, task_id, patch)
    if task is None:
        raise NotFound("Task not found")
    logger.info("Task updated id=%s user=%s", task_id, user_id)
    return jsonify(message="Task updated", task=task.to_dict()), 200


@tasks_bp.delete("/<task_id>")
@auth_required
def delete_task(task_id):
    user_id = get_current_user_id()
    if not get_stores().tasks.delete(user_id, task_id):
        raise NotFound("Task not found")
    logger.info("Task deleted id=%s user=%s", task_id, user_id)
    return jsonify(message="Task deleted"), 200
