"""Error kinds surfaced by the API.

Every error carries the HTTP status it maps to. Handlers registered in
``todo_api.app`` render them as ``{"error": "<message>"}``.
"""


class ApiError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ApiError):
    status_code = 400
    default_message = "Invalid input"


class Conflict(ApiError):
    status_code = 400
    default_message = "User already exists"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not Found"


class ServerError(ApiError):
    """Unexpected failure. The message is logged, never sent to the client."""

    status_code = 500
