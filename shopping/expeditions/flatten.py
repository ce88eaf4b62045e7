"""Flatten expedition crews into assignments and count crew per station.

Both functions are read-only over their input and keep no state, so they
can run concurrently on independent inputs. A missing required field is
returned as ``MissingFieldError`` carrying the path of the gap; nothing is
skipped silently.
"""

from collections import defaultdict
from typing import Sequence, Union

from shopping.errors import MissingFieldError
from shopping.expeditions.schemas import AstronautAssignment, CrewMember, Expedition


def _station_name(expedition: Expedition, path: str) -> Union[str, MissingFieldError]:
    if expedition.spacestation is None:
        return MissingFieldError(f"{path}.spacestation")
    if not expedition.spacestation.name:
        return MissingFieldError(f"{path}.spacestation.name")
    return expedition.spacestation.name


def _crew(expedition: Expedition, path: str) -> Union[list[CrewMember], MissingFieldError]:
    if expedition.crew is None:
        return MissingFieldError(f"{path}.crew")
    return expedition.crew


def _assignment(member: CrewMember, station: str, path: str) -> Union[AstronautAssignment, MissingFieldError]:
    if member.role is None:
        return MissingFieldError(f"{path}.role")
    if not member.role.role:
        return MissingFieldError(f"{path}.role.role")
    astronaut = member.astronaut
    if astronaut is None:
        return MissingFieldError(f"{path}.astronaut")
    if not astronaut.name:
        return MissingFieldError(f"{path}.astronaut.name")
    if astronaut.agency is None:
        return MissingFieldError(f"{path}.astronaut.agency")
    if not astronaut.agency.abbrev:
        return MissingFieldError(f"{path}.astronaut.agency.abbrev")
    return AstronautAssignment(
        astronaut_name=astronaut.name,
        role=member.role.role,
        agency=astronaut.agency.abbrev,
        station_name=station,
    )


def flatten(expeditions: Sequence[Expedition]) -> Union[list[AstronautAssignment], MissingFieldError]:
    """Produce one assignment per (expedition, crew member) pair.

    Output follows input order: expeditions first, then crew order within
    each expedition. Every expedition must name its station, even one with
    an empty crew.

    Args:
        expeditions: Parsed expeditions.

    Returns:
        The flat list, or the first MissingFieldError encountered, e.g.
        ``expeditions[1].crew[0].astronaut.agency``.
    """
    out: list[AstronautAssignment] = []
    for i, expedition in enumerate(expeditions):
        path = f"expeditions[{i}]"
        station = _station_name(expedition, path)
        if isinstance(station, MissingFieldError):
            return station
        crew = _crew(expedition, path)
        if isinstance(crew, MissingFieldError):
            return crew
        for j, member in enumerate(crew):
            assignment = _assignment(member, station, f"{path}.crew[{j}]")
            if isinstance(assignment, MissingFieldError):
                return assignment
            out.append(assignment)
    return out


def count_by_group(expeditions: Sequence[Expedition]) -> Union[dict[str, int], MissingFieldError]:
    """Count crew members per station name.

    Expeditions sharing a station name are merged by summing their crew
    sizes. Stations whose expeditions have no crew appear with a count of
    zero rather than being omitted.
    """
    counts: defaultdict[str, int] = defaultdict(int)
    for i, expedition in enumerate(expeditions):
        path = f"expeditions[{i}]"
        station = _station_name(expedition, path)
        if isinstance(station, MissingFieldError):
            return station
        crew = _crew(expedition, path)
        if isinstance(crew, MissingFieldError):
            return crew
        counts[station] += len(crew)
    return dict(counts)
