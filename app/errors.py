class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Invalid request"


class NotAuthorized(AppError):
    status_code = 401
    default_message = "Not authorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Not authorized to access this resource"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


def require_owned(doc: dict | None, user_id: str, label: str) -> dict:
    """404 when missing, 403 when owned by someone else. Never echoes the document."""
    if doc is None:
        raise NotFound(f"{label} not found")
    if doc.get("user_id") != user_id:
        raise Forbidden(f"Not authorized to access this {label.lower()}")
    return doc
