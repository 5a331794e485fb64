"""Budget targets: records, snapshots and the SQLite store."""

from .models import Category, CategorySnapshot
from .store import CategoryStore

__all__ = ["Category", "CategorySnapshot", "CategoryStore"]
