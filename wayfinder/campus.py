"""Campus dataset models consumed by the navigation graph builder.

Field names follow the data provider's camelCase payloads (`levelId`,
`verticalConnectorId`, `zIndex`, ...); snake_case names are accepted too.

Usage example:
    >>> from wayfinder.campus import load_campus_data
    >>> campus = load_campus_data("assets/sample_campus.json")
    >>> campus.unit_by_id()["U100"].type
    <UnitType.ENTRANCE: 'ENTRANCE'>
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel


class UnitType(str, Enum):
    """Closed set of indoor space categories."""

    CLASSROOM = "CLASSROOM"
    CORRIDOR = "CORRIDOR"
    ELEVATOR = "ELEVATOR"
    STAIRS = "STAIRS"
    OFFICE = "OFFICE"
    RESTRICTED = "RESTRICTED"
    ENTRANCE = "ENTRANCE"
    RESTAURANT = "RESTAURANT"


class DetailType(str, Enum):
    WALL = "WALL"
    DOOR = "DOOR"
    WINDOW = "WINDOW"


class CampusModel(BaseModel):
    """Base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Point(CampusModel):
    """Planar `(x, y)` or geographic `(lon, lat)` coordinate."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    @model_validator(mode="before")
    @classmethod
    def _accept_pair(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError("Point pairs must have exactly two values")
            return {"x": value[0], "y": value[1]}
        return value

    def as_tuple(self) -> tuple[float, float]:
        return float(self.x), float(self.y)


Polygon = list[Point]


class Site(CampusModel):
    id: str
    name: str = ""
    polygon: Polygon = Field(default_factory=list)
    dataset_id: int | None = None


class Facility(CampusModel):
    id: str
    name: str = ""
    polygon: Polygon = Field(default_factory=list)
    site_id: str | None = None
    dataset_id: int | None = None


class Level(CampusModel):
    """One floor of a facility; `z_index` orders floors vertically."""

    id: str
    name: str = ""
    facility_id: str = ""
    polygon: Polygon = Field(default_factory=list)
    z_index: float = 0.0
    dataset_id: int | None = None


class Unit(CampusModel):
    """Atomic indoor space (room, corridor segment, stairwell cell, ...)."""

    id: str
    name: str = ""
    type: UnitType
    level_id: str
    polygon: Polygon = Field(default_factory=list)
    accessible: bool | None = None
    vertical_connector_id: str | None = None
    dataset_id: int | None = None

    def coords(self) -> list[tuple[float, float]]:
        """Return polygon vertices as `(x, y)` tuples."""
        return [p.as_tuple() for p in self.polygon]


class Detail(CampusModel):
    """Wall/door/window line used for rendering and door placement checks."""

    id: str
    type: DetailType
    level_id: str
    line: list[Point] = Field(default_factory=list)
    use_type: str | None = None
    height: float | None = None
    dataset_id: int | None = None


class CampusData(CampusModel):
    """Aggregate dataset handed to the routing core by the data provider."""

    sites: list[Site] = Field(default_factory=list)
    facilities: list[Facility] = Field(default_factory=list)
    levels: list[Level] = Field(default_factory=list)
    units: list[Unit] = Field(default_factory=list)
    details: list[Detail] = Field(default_factory=list)

    def level_by_id(self) -> dict[str, Level]:
        return {level.id: level for level in self.levels}

    def unit_by_id(self) -> dict[str, Unit]:
        """Map unit id to unit; the first occurrence wins for duplicate ids."""
        out: dict[str, Unit] = {}
        for unit in self.units:
            out.setdefault(unit.id, unit)
        return out

    def units_on_level(self, level_id: str) -> list[Unit]:
        return [unit for unit in self.units if unit.level_id == level_id]


def load_campus_data(path: str | Path) -> CampusData:
    """Load a campus JSON document.

    Args:
        path: JSON file with `sites`, `facilities`, `levels`, `units`, `details`.

    Returns:
        Validated CampusData.

    Raises:
        ValueError: If the file is missing or does not match the schema.
    """
    source = Path(path)
    if not source.exists():
        raise ValueError(f"Campus data file not found: {source}")

    try:
        return CampusData.model_validate_json(source.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ValueError(f"Invalid campus data in {source}: {exc}") from exc
