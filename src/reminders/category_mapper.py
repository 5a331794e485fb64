"""Mapping between place-provider categories and budget categories."""

from typing import Iterable, Mapping

from budget.models import Category, CategorySnapshot
from shared_types import AppCategory, ProviderCategory

DEFAULT_TABLE: dict[ProviderCategory, AppCategory | None] = {
    ProviderCategory.RESTAURANT: AppCategory.EATING_OUT,
    ProviderCategory.CAFE: AppCategory.EATING_OUT,
    ProviderCategory.FOOD_MARKET: AppCategory.GROCERIES,
    ProviderCategory.BEAUTY: AppCategory.BEAUTY,
    ProviderCategory.FITNESS_CENTER: None,
    ProviderCategory.GAS_STATION: None,
}


class CategoryMapper:
    """Bidirectional lookup over a fixed table.

    Every ProviderCategory has an entry; None marks it as deliberately
    unmapped. Unknown provider strings are unmapped too, never an error.
    """

    def __init__(self, table: Mapping[ProviderCategory, AppCategory | None] | None = None):
        self._forward: dict[ProviderCategory, AppCategory | None] = {
            p: None for p in ProviderCategory
        }
        self._forward.update(DEFAULT_TABLE if table is None else table)
        self._reverse: dict[AppCategory, frozenset[ProviderCategory]] = {}
        for app in AppCategory:
            self._reverse[app] = frozenset(p for p, a in self._forward.items() if a == app)

    @staticmethod
    def parse_provider(raw: str | ProviderCategory | None) -> ProviderCategory | None:
        if raw is None:
            return None
        try:
            return ProviderCategory(raw)
        except ValueError:
            return None

    @staticmethod
    def parse_app(raw: str | AppCategory | None) -> AppCategory | None:
        if raw is None:
            return None
        try:
            return AppCategory(raw)
        except ValueError:
            return None

    def to_app(self, provider_category: str | ProviderCategory | None) -> AppCategory | None:
        """Budget category for a provider category, or None when unmapped."""
        parsed = self.parse_provider(provider_category)
        if parsed is None:
            return None
        return self._forward[parsed]

    def to_provider(self, app_category: str | AppCategory) -> frozenset[ProviderCategory]:
        """Provider categories that count as the given budget category."""
        parsed = self.parse_app(app_category)
        if parsed is None:
            return frozenset()
        return self._reverse.get(parsed, frozenset())

    def provider_filter(self, category_names: Iterable[str]) -> frozenset[ProviderCategory]:
        """Union of provider categories for the active budget category names."""
        result: set[ProviderCategory] = set()
        for name in category_names:
            result |= self.to_provider(name)
        return frozenset(result)

    def match_category(
        self, provider_category: str | None, categories: CategorySnapshot
    ) -> Category | None:
        """Active budget category a resolved place belongs to, if any."""
        app = self.to_app(provider_category)
        if app is None:
            return None
        return categories.by_name(app.value)

    def table(self) -> dict[ProviderCategory, AppCategory | None]:
        return dict(self._forward)


default_mapper = CategoryMapper()
