import logging

from flask import Blueprint, jsonify

from todo_api.errors import InvalidInput
from todo_api.utils import auth_token
from todo_api.utils.db import get_stores
from todo_api.utils.payload import get_payload

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/register")
def register():
    payload = get_payload()
    user = get_stores().users.register(
        payload.get("username"), payload.get("email"), payload.get("password")
    )
    logger.info("Registered user id=%s username=%s", user.id, user.username)
    return jsonify(message="User created successfully"), 201


@auth_bp.post("/login")
def login():
    payload = get_payload()
    username = payload.get("username")
    password = payload.get("password")
    if not username or not password:
        raise InvalidInput("Username and password are required")

    user = get_stores().users.verify(username, password)
    if user is None:
        # Same response for unknown user and wrong password
        logger.info("Login failed username=%s", username)
        raise InvalidInput("Invalid credentials")

    logger.info("Login ok user id=%s", user.id)
    return jsonify(token=auth_token.issue(user), user=user.to_public()), 200
