"""
Purpose: Central configuration for the truck costing block sent to Valhalla.
What it does:

Stores every costing option the backend receives on each matrix and route call:

vehicle dimensions (length, width, height, weight, axle_load, axle_count)

road usage weights (use_highways, use_tolls, use_ferry, ...)

penalties and costs (ferry_cost, gate_penalty, toll_booth_cost, ...)

Valhalla needs the complete costing object on every call, so it is kept as one
structured value and serialized at query time.

Rule: No logic here beyond validation and serialization.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class TruckCosting:
    """
    Valhalla 'truck' costing options.

    Notes:
    - dimensions are in meters, weights in metric tons.
    - use_* values are preferences in [0, 1]; 0 avoids, 1 favors.
    - integer-valued options stay ints so the wire text reads "1", not "1.0".
    """

    exclude_polygons: List[Any] = field(default_factory=list)
    maneuver_penalty: int = 5
    country_crossing_penalty: int = 0
    country_crossing_cost: int = 600

    # --- Vehicle dimensions ---
    length: float = 21.5
    width: float = 1.6
    height: float = 1.9
    weight: float = 21.77
    axle_load: float = 9
    hazmat: bool = False

    # --- Road usage preferences ---
    use_highways: float = 1
    use_tolls: float = 1
    use_ferry: float = 1
    ferry_cost: int = 300
    use_living_streets: float = 0.5
    use_tracks: float = 0
    private_access_penalty: int = 450

    # --- Closures / restrictions ---
    ignore_closures: bool = False
    ignore_restrictions: bool = False
    ignore_access: bool = False
    closure_factor: float = 9

    service_penalty: int = 15
    service_factor: float = 1
    exclude_unpaved: int = 1
    shortest: bool = False
    exclude_cash_only_tolls: bool = False

    # --- Speed / axles ---
    top_speed: int = 140  # km/h
    axle_count: int = 5
    fixed_speed: int = 0

    # --- Tolls and gates ---
    toll_booth_penalty: int = 0
    toll_booth_cost: int = 15
    gate_penalty: int = 300
    gate_cost: int = 30

    include_hov2: bool = False
    include_hov3: bool = False
    include_hot: bool = False
    disable_hierarchy_pruning: bool = False

    # costing model the options are keyed under
    name: str = "truck"

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup.
        """
        for dimension in ("length", "width", "height", "weight", "axle_load"):
            if getattr(self, dimension) <= 0:
                raise ValueError(f"{dimension} must be > 0")

        for preference in ("use_highways", "use_tolls", "use_ferry", "use_living_streets", "use_tracks"):
            value = getattr(self, preference)
            if not 0 <= value <= 1:
                raise ValueError(f"{preference} must be within [0, 1], got {value}")

        if not 10 <= self.top_speed <= 252:
            raise ValueError("top_speed must be within [10, 252] km/h")

        if self.axle_count < 2:
            raise ValueError("axle_count must be >= 2")

        if self.fixed_speed < 0:
            raise ValueError("fixed_speed must be >= 0")

    def options(self) -> Dict[str, Any]:
        """Costing fields in wire order, without the costing name."""
        values = asdict(self)
        values.pop("name")
        return values

    def to_costing_options(self) -> Dict[str, Dict[str, Any]]:
        """The "costing_options" object as Valhalla reads it."""
        return {self.name: self.options()}


def default_truck_costing() -> TruckCosting:
    """
    Convenience factory for the default costing.
    """
    c = TruckCosting()
    c.validate()
    return c
