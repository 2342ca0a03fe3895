"""Bearer token codec.

The token is ``base64("<user_id>:<username>")``. It is neither signed nor
expiring: anyone who knows an existing (id, username) pair can forge one.
This is insecure by design and kept for compatibility with existing clients;
switching to a signed token would change the wire protocol.
"""

import base64
import binascii
from typing import Optional, Tuple

AUTH_SCHEME = "Basic "


def issue(user) -> str:
    raw = f"{user.id}:{user.username}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode(token: str) -> Optional[Tuple[str, str]]:
    """Return ``(user_id, username)`` or None when the token is malformed."""
    if not token:
        return None
    try:
        raw = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None
    user_id, sep, username = raw.partition(":")
    if not sep or not user_id or not username:
        return None
    return user_id, username


def from_header(value: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Basic <token>`` header."""
    if not value or not value.startswith(AUTH_SCHEME):
        return None
    return value[len(AUTH_SCHEME):]
