from .http import AppError, ConflictError, ForbiddenError, NotFoundError, ValidationError

__all__ = ["AppError", "ConflictError", "ForbiddenError", "NotFoundError", "ValidationError"]
