"""CLI command modules."""

from .engine import check, run
from .init import init
from .targets import categories, targets

__all__ = [
    "targets",
    "categories",
    "run",
    "check",
    "init",
]
