"""Pydantic models for Launch Library 2 expedition payloads.

Only the fields this project reads are declared; unknown keys in the
upstream JSON are ignored. Nested objects are optional so that a payload
with gaps still parses, and the flattener can report exactly which
required field is missing instead of failing the whole response.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(BaseModel):
    role: Optional[str] = None


class Agency(BaseModel):
    name: Optional[str] = None
    abbrev: Optional[str] = None


class Nationality(BaseModel):
    name: Optional[str] = None
    nationality_name: Optional[str] = None


class Astronaut(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    agency: Optional[Agency] = None
    nationality: list[Nationality] = Field(default_factory=list)
    time_in_space: Optional[str] = None
    bio: Optional[str] = None


class CrewMember(BaseModel):
    """Assignment of one astronaut to a role within an expedition."""

    role: Optional[Role] = None
    astronaut: Optional[Astronaut] = None


class SpaceStation(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    orbit: Optional[str] = None


class Expedition(BaseModel):
    """An expedition aboard a space station, with its crew.

    ``spacestation.name`` is the grouping key used by the aggregator;
    ``crew`` is the member list.
    """

    id: Optional[int] = None
    name: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    spacestation: Optional[SpaceStation] = None
    crew: Optional[list[CrewMember]] = None


class ExpeditionResponse(BaseModel):
    """Root of the ``/expeditions/`` response."""

    count: int = 0
    results: list[Expedition] = Field(default_factory=list)


class AstronautAssignment(BaseModel):
    """Flattened view of one crew member aboard one station."""

    model_config = ConfigDict(frozen=True)

    astronaut_name: str
    role: str
    agency: str
    station_name: str
