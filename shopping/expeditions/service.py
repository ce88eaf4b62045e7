"""Expedition service: fetch expeditions and reshape their crews.

``ExpeditionService`` composes an ``ExpeditionSource`` (HTTP or static)
with the pure flattener. It does no I/O of its own beyond calling the
source once per operation.
"""

from typing import Protocol, Union

from shopping.errors import MissingFieldError
from shopping.expeditions.flatten import count_by_group, flatten
from shopping.expeditions.schemas import AstronautAssignment, Expedition


class ExpeditionSource(Protocol):
    """Port describing where expedition data comes from."""

    def fetch_active_expeditions(self) -> list[Expedition]:
        raise NotImplementedError()


class ExpeditionService:
    """Read-side operations over the currently active expeditions."""

    def __init__(self, source: ExpeditionSource):
        self.source = source

    def get_expeditions(self) -> list[Expedition]:
        return self.source.fetch_active_expeditions()

    def get_astronaut_assignments(self) -> Union[list[AstronautAssignment], MissingFieldError]:
        """One record per crew member: astronaut, role, agency and station."""
        return flatten(self.get_expeditions())

    def get_crew_count_by_station(self) -> Union[dict[str, int], MissingFieldError]:
        """Crew size per station name, summed across expeditions."""
        return count_by_group(self.get_expeditions())
