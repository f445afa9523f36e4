"""
Declarative base exports - engine and sessions live in itmaint.database
"""

from .base import Base, TimestampMixin

__all__ = ["Base", "TimestampMixin"]
