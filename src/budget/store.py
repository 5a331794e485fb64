"""SQLite-backed store for budget targets with change notifications."""

from pathlib import Path
from typing import Callable

import structlog

from db import transaction

from .models import Category, CategorySnapshot

logger = structlog.get_logger().bind(source="category_store")

ChangeListener = Callable[[CategorySnapshot], None]


class CategoryStore:
    """Persist budget targets and notify listeners on every mutation."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: list[ChangeListener] = []
        self._init_db()

    def _init_db(self):
        with transaction(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS budget_categories (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    target_amount INTEGER NOT NULL,
                    timeframe TEXT NOT NULL,
                    remaining_budget INTEGER NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_budget_position ON budget_categories(position)"
            )

    # --- listeners ---

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("category_listener_failed", listener=repr(listener))

    # --- reads ---

    def list_categories(self) -> list[Category]:
        with transaction(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM budget_categories ORDER BY position ASC"
            ).fetchall()
        return [self._row_to_category(r) for r in rows]

    def get(self, category_id: str) -> Category | None:
        with transaction(self.db_path, row_factory=True) as conn:
            row = conn.execute(
                "SELECT * FROM budget_categories WHERE id = ?", (category_id,)
            ).fetchone()
        return self._row_to_category(row) if row else None

    def snapshot(self) -> CategorySnapshot:
        return CategorySnapshot(self.list_categories())

    # --- writes ---

    def add(self, category: Category) -> Category:
        """Append a target. Returns the stored category."""
        category.validate()
        with transaction(self.db_path) as conn:
            (next_pos,) = conn.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 FROM budget_categories"
            ).fetchone()
            conn.execute(
                """INSERT INTO budget_categories
                   (id, position, name, target_amount, timeframe, remaining_budget)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    category.id,
                    next_pos,
                    category.name,
                    category.target_amount,
                    category.timeframe,
                    category.remaining_budget,
                ),
            )
        logger.info("category_added", category_id=category.id, name=category.name)
        self._notify()
        return category

    def update(self, category: Category, reset_remaining: bool = True) -> bool:
        """Replace a target in place, keeping its position.

        Editing a target resets the remaining budget to the new target
        unless ``reset_remaining`` is False.
        """
        if reset_remaining:
            category.remaining_budget = category.target_amount
        category.validate()
        with transaction(self.db_path) as conn:
            cursor = conn.execute(
                """UPDATE budget_categories
                   SET name = ?, target_amount = ?, timeframe = ?, remaining_budget = ?
                   WHERE id = ?""",
                (
                    category.name,
                    category.target_amount,
                    category.timeframe,
                    category.remaining_budget,
                    category.id,
                ),
            )
            found = cursor.rowcount > 0
        if found:
            logger.info("category_updated", category_id=category.id)
            self._notify()
        return found

    def update_remaining_budget(self, category_id: str, amount: int) -> bool:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(f"amount must be an integer, got {amount!r}")
        with transaction(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE budget_categories SET remaining_budget = ? WHERE id = ?",
                (amount, category_id),
            )
            found = cursor.rowcount > 0
        if found:
            self._notify()
        return found

    def delete(self, category_id: str) -> bool:
        with transaction(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM budget_categories WHERE id = ?", (category_id,)
            )
            found = cursor.rowcount > 0
        if found:
            logger.info("category_deleted", category_id=category_id)
            self._notify()
        return found

    def clear(self) -> int:
        with transaction(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM budget_categories")
            count = cursor.rowcount
        logger.info("categories_cleared", count=count)
        self._notify()
        return count

    @staticmethod
    def _row_to_category(row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            target_amount=row["target_amount"],
            timeframe=row["timeframe"],
            remaining_budget=row["remaining_budget"],
        )
