from .connection import Database
from .models import Base

__all__ = [
    "Base",
    "Database",
]
