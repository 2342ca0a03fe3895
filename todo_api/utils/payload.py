from flask import request


def get_payload() -> dict:
    """Request body as a dict; unparseable or non-object bodies count as empty."""
    data = request.get_json(silent=True, force=True)
    return data if isinstance(data, dict) else {}
