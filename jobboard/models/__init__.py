"""Database models"""
from jobboard.models.stored_item import StoredItem

__all__ = [
    "StoredItem",
]
