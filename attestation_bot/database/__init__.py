from .connection import DatabaseManager
from .repositories import UserRepository

__all__ = [
    "DatabaseManager",
    "UserRepository"
]
