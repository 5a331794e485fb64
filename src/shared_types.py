"""Shared enums for willpower reminders."""

from enum import StrEnum


class Timeframe(StrEnum):
    DAY = "day"
    WEEK = "wk"
    MONTH = "mo"
    YEAR = "yr"


class AppCategory(StrEnum):
    """Budget categories a user can set a target for."""

    EATING_OUT = "🍔 Eating out"
    GROCERIES = "🛒 Groceries"
    BEAUTY = "💄 Beauty"


class ProviderCategory(StrEnum):
    """Point-of-interest categories understood by place providers."""

    RESTAURANT = "restaurant"
    FOOD_MARKET = "food_market"
    BEAUTY = "beauty"
    CAFE = "cafe"
    FITNESS_CENTER = "fitness_center"
    GAS_STATION = "gas_station"
