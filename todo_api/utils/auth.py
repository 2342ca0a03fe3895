import functools

from flask import g, request

from todo_api.errors import Unauthorized
from todo_api.utils import auth_token
from todo_api.utils.db import get_stores


def authenticate():
    """Resolve the request's bearer credential to a stored user."""
    decoded = auth_token.decode(auth_token.from_header(request.headers.get("Authorization")))
    if decoded is None:
        raise Unauthorized()
    user_id, username = decoded
    user = get_stores().users.find_by_id(user_id)
    if user is None or user.username != username:
        raise Unauthorized()
    return user


def auth_required(view):
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = authenticate()
        return view(*args, **kwargs)

    return wrapper


def get_current_user_id() -> str:
    return g.current_user.id
