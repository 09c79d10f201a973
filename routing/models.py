"""
Purpose: Domain models for the routing adapter.
What it does:
- Defines the value types exchanged with the Valhalla wrapper:
- Location (lon, lat), Server (host, port, path)
- MatrixCell, Matrices, RouteResult

Defines enums/constants:
- ServiceKind = MATRIX | ROUTE

Rule: No HTTP calls, no JSON parsing. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

#caller coordinate type : (lat, lon)
LatLon = Tuple[float, float]


class ServiceKind(str, Enum):
    """
    Which Valhalla service a query targets.
    Selects both the query template and the expected response shape.
    """
    MATRIX = "matrix"
    ROUTE = "route"


@dataclass(frozen=True)
class Location:
    """
    A geographic point as Valhalla expects it: longitude first.
    Order inside a location list is significant and preserved in queries
    and in the response index mapping.
    """
    lon: float
    lat: float

    @classmethod
    def from_lat_lon(cls, lat: float, lon: float) -> Location:
        return cls(lon=lon, lat=lat)

    def to_lat_lon(self) -> LatLon:
        return (self.lat, self.lon)

    def __str__(self) -> str:
        return f"[{self.lon},{self.lat}]"


@dataclass(frozen=True)
class Server:
    """
    Where the Valhalla instance lives.
    path is the optional base path in front of the service endpoints.
    """
    host: str
    port: str = "8002"
    path: str = ""

    @classmethod
    def new(cls, host: str, port: str | int = "8002", path: str = "") -> Server:
        #endpoint segments are appended directly to path
        path = path.strip("/")
        if path:
            path += "/"
        return cls(host=host, port=str(port), path=path)


@dataclass(frozen=True)
class MatrixCell:
    """
    One (source, target) entry of a matrix.
    None means the backend found no path; it is never turned into 0.
    """
    duration: Optional[int]  # in seconds
    distance: Optional[int]  # in meters


@dataclass
class Matrices:
    """N x N durations (s) and distances (m), row = source, column = target."""
    durations: List[List[Optional[int]]]
    distances: List[List[Optional[int]]]

    def cell(self, source: int, target: int) -> MatrixCell:
        return MatrixCell(
            duration=self.durations[source][target],
            distance=self.distances[source][target],
        )

    def __len__(self) -> int:
        return len(self.durations)


@dataclass
class RouteResult:
    """
    Output of a route call: one merged polyline (precision 5) plus the
    trip totals when Valhalla sent a summary.
    """
    geometry: str
    legs: int
    duration: Optional[int] = None  # in seconds
    distance: Optional[int] = None  # in meters
