"""
Server-side error taxonomy.

Every error carries an HTTP status and a human readable message; the API
layer renders them as ``{"message": ...}`` bodies.
"""


class AppError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateEmail(AppError):
    status_code = 400
    message = "Email already registered"


class InvalidCredentials(AppError):
    # Unknown email and wrong password share this message.
    status_code = 400
    message = "Invalid credentials"


class WeakPassword(AppError):
    status_code = 400
    message = "Password must be at least 6 characters"


class Unauthorized(AppError):
    status_code = 401
    message = "Not authorized"


class NotFound(AppError):
    status_code = 404
    message = "Task not found"


class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"


class ServerError(AppError):
    status_code = 500
    message = "Server error"
