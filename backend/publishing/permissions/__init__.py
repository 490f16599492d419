"""Permission objects, one class per (role, action) pair.

Importing this package registers every permission on its role.
"""
from . import admin, editor, guest, member, moderator, reviewer  # noqa: F401
from .base import Permission

__all__ = ["Permission"]
