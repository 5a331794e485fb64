"""Budget target records and the read-only snapshot the engine consumes."""

import uuid
from dataclasses import asdict, dataclass, field
from typing import Iterator

from shared_types import AppCategory, Timeframe


@dataclass
class Category:
    """A spending target for one budget category."""

    name: str
    target_amount: int
    timeframe: str = Timeframe.WEEK.value
    remaining_budget: int | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if self.remaining_budget is None:
            self.remaining_budget = self.target_amount

    def validate(self) -> None:
        """Raise ValueError if any field is outside the fixed vocabularies."""
        if self.name not in {c.value for c in AppCategory}:
            raise ValueError(f"Unknown category: {self.name!r}")
        if self.timeframe not in {t.value for t in Timeframe}:
            raise ValueError(f"Unknown timeframe: {self.timeframe!r}")
        if isinstance(self.target_amount, bool) or not isinstance(self.target_amount, int):
            raise ValueError(f"target_amount must be an integer, got {self.target_amount!r}")
        if self.target_amount < 0:
            raise ValueError(f"target_amount must be >= 0, got {self.target_amount}")
        if isinstance(self.remaining_budget, bool) or not isinstance(self.remaining_budget, int):
            raise ValueError(f"remaining_budget must be an integer, got {self.remaining_budget!r}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(
            id=data.get("id") or uuid.uuid4().hex,
            name=data["name"],
            target_amount=int(data["target_amount"]),
            timeframe=data.get("timeframe", Timeframe.WEEK.value),
            remaining_budget=data.get("remaining_budget"),
        )


class CategorySnapshot:
    """Immutable ordered view of the active categories.

    Replaced wholesale whenever the store changes; never patched in place.
    """

    __slots__ = ("_items",)

    def __init__(self, categories=()):
        self._items: tuple[Category, ...] = tuple(
            Category(
                id=c.id,
                name=c.name,
                target_amount=c.target_amount,
                timeframe=c.timeframe,
                remaining_budget=c.remaining_budget,
            )
            for c in categories
        )

    def __iter__(self) -> Iterator[Category]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"CategorySnapshot({[c.name for c in self._items]!r})"

    @property
    def is_empty(self) -> bool:
        return not self._items

    def names(self) -> set[str]:
        return {c.name for c in self._items}

    def by_name(self, name: str) -> Category | None:
        """First category with the given name, in store order."""
        for c in self._items:
            if c.name == name:
                return c
        return None
