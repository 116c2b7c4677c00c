"""Routing configuration shared by the geometry kernel, graph builder and router."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from wayfinder.geometry import DistanceMode


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class RoutingConfig:
    """Tunable parameters for one dataset's unit system.

    `epsilon` is expressed in coordinate units (degrees for geographic data).
    `vertical_penalty` and `repair_max_distance` are expressed in the unit the
    distance mode produces: coordinate units for planar data, meters for
    geodesic data.
    """

    distance_mode: DistanceMode = DistanceMode.PLANAR
    epsilon: float = 1e-9
    vertical_penalty: float = 50.0
    repair_isolated: bool = True
    repair_max_distance: float = 100.0
    respect_accessible_flag: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.distance_mode, DistanceMode):
            object.__setattr__(self, "distance_mode", DistanceMode(self.distance_mode))
        for name in ("epsilon", "vertical_penalty", "repair_max_distance"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be > 0")

    @classmethod
    def planar(cls, **overrides: object) -> "RoutingConfig":
        """Preset for schematic datasets in planar coordinates."""
        return cls(**overrides)

    @classmethod
    def geodesic(cls, **overrides: object) -> "RoutingConfig":
        """Preset for lon/lat datasets; weights are haversine meters."""
        params: dict[str, object] = {
            "distance_mode": DistanceMode.GEODESIC,
            "epsilon": 1e-6,
            "vertical_penalty": 20.0,
            "repair_max_distance": 30.0,
        }
        params.update(overrides)
        return cls(**params)

    @classmethod
    def from_env(cls) -> "RoutingConfig":
        """Build config from `WAYFINDER_*` environment variables.

        `WAYFINDER_DISTANCE_MODE` selects the preset (`planar` or `geodesic`);
        the remaining variables override individual preset values.
        """
        raw_mode = os.getenv("WAYFINDER_DISTANCE_MODE", DistanceMode.PLANAR.value).strip().lower()
        try:
            mode = DistanceMode(raw_mode)
        except ValueError as exc:
            raise ValueError(f"WAYFINDER_DISTANCE_MODE must be 'planar' or 'geodesic', got {raw_mode!r}") from exc

        base = cls.geodesic() if mode is DistanceMode.GEODESIC else cls.planar()
        return cls(
            distance_mode=mode,
            epsilon=_env_float("WAYFINDER_EPSILON", base.epsilon),
            vertical_penalty=_env_float("WAYFINDER_VERTICAL_PENALTY", base.vertical_penalty),
            repair_isolated=_env_bool("WAYFINDER_REPAIR_ISOLATED", base.repair_isolated),
            repair_max_distance=_env_float("WAYFINDER_REPAIR_MAX_DISTANCE", base.repair_max_distance),
            respect_accessible_flag=_env_bool("WAYFINDER_RESPECT_ACCESSIBLE", base.respect_accessible_flag),
        )
