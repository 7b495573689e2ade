from .base import AppError, DomainError

__all__ = [
    "AppError",
    "DomainError",
]
