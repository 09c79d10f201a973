#Purpose: Precision-aware polyline helpers.
#Valhalla encodes shapes with 6 decimal digits while the rest of the output
#uses 5. Decoding and encoding go through the `polyline` package with the
#precision passed explicitly on every call.

from typing import Iterable, List, Tuple

import polyline

from routing.models import LatLon

# Precision used by Valhalla for trip.legs[].shape
VALHALLA_POLYLINE_PRECISION = 6
# Precision of every geometry we hand back to callers
POLYLINE_PRECISION = 5


def decode_shape(shape: str, precision: int = VALHALLA_POLYLINE_PRECISION) -> List[LatLon]:
    """Decode an encoded polyline into (lat, lon) points."""
    return [tuple(point) for point in polyline.decode(shape, precision)]


def encode_points(points: Iterable[LatLon], precision: int = POLYLINE_PRECISION) -> str:
    """Encode (lat, lon) points as a polyline string."""
    return polyline.encode(list(points), precision)


def merge_legs(legs: Iterable[List[LatLon]]) -> List[LatLon]:
    """
    Concatenate leg point lists into one sequence.

    Consecutive legs share their boundary point, so the last point collected
    so far is dropped before each later leg is appended. Nothing is dropped
    while the accumulator is still empty.
    """
    merged: List[LatLon] = []
    for index, points in enumerate(legs):
        if index > 0 and merged:
            merged.pop()
        merged.extend(points)
    return merged


def convert_precision(
    shapes: Iterable[str],
    *,
    source_precision: int = VALHALLA_POLYLINE_PRECISION,
    target_precision: int = POLYLINE_PRECISION,
) -> Tuple[str, int]:
    """
    Merge encoded leg shapes and re-encode them at target_precision.

    Returns the merged polyline and its point count.
    """
    points = merge_legs(decode_shape(shape, source_precision) for shape in shapes)
    return encode_points(points, target_precision), len(points)
