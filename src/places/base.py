"""Point-of-interest provider abstraction."""

from abc import ABC, abstractmethod
from typing import Iterable

from reminders.geo import Coordinate
from reminders.models import PlaceCandidate


class PlaceProvider(ABC):
    """Searches for places of given categories around a center point."""

    provider_name: str = "base"

    @abstractmethod
    async def query(
        self,
        center: Coordinate,
        radius_m: float,
        categories: Iterable[str],
    ) -> list[PlaceCandidate]:
        """Places within radius_m of center whose category is in categories.

        Raises:
            ProviderError: the search could not be completed.
        """
        ...

    async def aclose(self) -> None:
        """Release held resources. Default: nothing to release."""
