"""
Typed failures raised by the service layer.

Each error carries the user-facing message verbatim and a ``status_code`` hint
that the API layer uses to build its response.
"""


class AppError(Exception):
    """Base class for every failure the services surface to the caller."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(AppError):
    """Missing or malformed input. Nothing was written."""

    status_code = 400


class ForbiddenError(AppError):
    """The caller is authenticated but does not own the resource."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """The write would break a uniqueness or referential rule."""

    # The ledger API answers conflicts as bad requests.
    status_code = 400
