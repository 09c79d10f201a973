#Purpose: The Valhalla "wrapper".
#Sole responsibility: translate between our routing contract and Valhalla's JSON API.
#Encapsulates Valhalla-specific details:
#query construction (sources_to_targets / route, truck costing block)
#response validation (status_code / trip.status error shapes)
#matrix cell extraction (null cells, km -> m)
#merging per-leg shapes into one polyline at our precision
#It performs no I/O: sending the request and parsing JSON happen outside.

import json
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from routing.costing import TruckCosting, default_truck_costing
from routing.errors import InvalidServiceError, MalformedResponseError, RoutingBackendError
from routing.models import Location, ServiceKind, Server
from routing.polyline_codec import (
    POLYLINE_PRECISION,
    VALHALLA_POLYLINE_PRECISION,
    convert_precision,
)

logger = logging.getLogger(__name__)

KM_TO_M = 1000
HTTP_OK = 200

# Endpoint path segment per service
SERVICE_ENDPOINTS = {
    ServiceKind.MATRIX: "sources_to_targets",
    ServiceKind.ROUTE: "route",
}

# Extra top-level arguments appended to every route query
DEFAULT_ROUTING_ARGS = {"directions_type": "none"}

JsonBody = Dict[str, Any]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _round_half_up(value: Union[int, float], scale: int = 1) -> int:
    """Scale then round half away from zero, working on the decimal text of value."""
    return int((Decimal(str(value)) * scale).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class ValhallaWrapper:
    """
    Valhalla adapter

    Sole responsibility:
    - Build the raw HTTP request for a matrix or a route
    - Reject responses where Valhalla signals a failure
    - Convert Valhalla values into our units (seconds, meters, precision 5 polyline)

    Read-only after construction: one instance can serve many callers.
    """

    def __init__(
        self,
        profile: str,
        server: Server,
        costing: Optional[TruckCosting] = None,
        routing_args: Optional[Dict[str, Any]] = None,
    ):
        self.profile = profile  # costing model name sent as "costing"
        self.server = server
        self.costing = costing or default_truck_costing()
        self.routing_args = dict(DEFAULT_ROUTING_ARGS if routing_args is None else routing_args)

    #----------------
    # Internal helpers
    #----------------
    @staticmethod
    def service_kind(service: Union[ServiceKind, str]) -> ServiceKind:
        """Normalize a service argument, failing fast on anything unknown."""
        try:
            return ServiceKind(service)
        except ValueError:
            raise InvalidServiceError(service) from None

    def endpoint(self, service: Union[ServiceKind, str]) -> str:
        return SERVICE_ENDPOINTS[self.service_kind(service)]

    def service_url(self, service: Union[ServiceKind, str]) -> str:
        """Absolute URL of the service endpoint, for HTTP client libraries."""
        return f"http://{self.server.host}:{self.server.port}/{self.server.path}{self.endpoint(service)}"

    @staticmethod
    def _dumps(body: JsonBody) -> str:
        # compact separators keep the request line free of spaces
        # NaN and infinity have no JSON form, so they fail here as ValueError
        return json.dumps(body, separators=(",", ":"), allow_nan=False)

    #----------------
    # QueryBuilder
    #----------------
    def get_matrix_payload(self, locations: Sequence[Location]) -> JsonBody:
        """Every location is both a source and a target (full N x N matrix)."""
        all_locations = [{"lon": location.lon, "lat": location.lat} for location in locations]
        return {
            "sources": all_locations,
            "targets": list(all_locations),
            "costing_options": self.costing.to_costing_options(),
            "costing": self.profile,
        }

    def get_route_payload(self, locations: Sequence[Location]) -> JsonBody:
        """
        Every location is a "break" so Valhalla stops at each of them
        instead of passing through. This keeps the returned geometry
        consistent with times/distances coming from a separate matrix call.
        """
        payload: JsonBody = {
            "locations": [
                {"lon": location.lon, "lat": location.lat, "type": "break"}
                for location in locations
            ],
            "costing": self.profile,
        }
        payload.update(self.routing_args)
        payload["costing_options"] = self.costing.to_costing_options()
        return payload

    def build_payload(self, locations: Sequence[Location], service: Union[ServiceKind, str]) -> str:
        """JSON body of the request, as sent in the json= query parameter."""
        kind = self.service_kind(service)
        if not locations:
            raise ValueError("At least one location is required to build a Valhalla query.")

        if kind is ServiceKind.MATRIX:
            return self._dumps(self.get_matrix_payload(locations))
        return self._dumps(self.get_route_payload(locations))

    def build_query(self, locations: Sequence[Location], service: Union[ServiceKind, str]) -> str:
        """
        Build the raw HTTP request for the given service.

        Returns the exact text to send: request line, Host, Accept and
        Connection headers, then the blank line terminator.
        """
        kind = self.service_kind(service)
        payload = self.build_payload(locations, kind)

        query = f"GET /{self.server.path}{SERVICE_ENDPOINTS[kind]}?json={payload} HTTP/1.1\r\n"
        query += f"Host: {self.server.host}\r\n"
        query += "Accept: */*\r\n"
        query += "Connection: Close\r\n\r\n"

        logger.debug(f"Valhalla {kind.value} query for {len(locations)} locations")
        return query

    #----------------
    # ResponseValidator
    #----------------
    def check_response(self, json_result: JsonBody, service: Union[ServiceKind, str]) -> None:
        """
        Raise RoutingBackendError if Valhalla reported a failure.

        Valhalla only sends status_code when something went wrong at the
        request level (payload too large, malformed request). Routing
        failures on a route call show up as a nonzero trip.status instead.
        """
        kind = self.service_kind(service)
        if not isinstance(json_result, dict):
            raise MalformedResponseError(f"Valhalla {kind.value} response is not a JSON object")

        status_code = json_result.get("status_code")
        if _is_number(status_code) and status_code != HTTP_OK:
            error = json_result.get("error")
            message = error if isinstance(error, str) else ""
            logger.error(f"Valhalla {kind.value} request failed with status {status_code}: {message}")
            raise RoutingBackendError(kind.value, message)

        if kind is ServiceKind.ROUTE:
            trip = json_result.get("trip")
            if not isinstance(trip, dict) or "status" not in trip:
                raise MalformedResponseError("Valhalla route response has no trip.status")

            status = trip["status"]
            if not _is_number(status):
                raise MalformedResponseError(f"Unexpected trip.status value: {status!r}")

            if status != 0:
                message = trip.get("status_message")
                if not isinstance(message, str):
                    raise MalformedResponseError(
                        f"Valhalla trip.status is {status} but trip.status_message is missing"
                    )
                logger.error(f"Valhalla route failed with trip status {status}: {message}")
                raise RoutingBackendError(kind.value, message)

    validate = check_response

    #----------------
    # MatrixExtractor
    #----------------
    @staticmethod
    def matrix_rows(json_result: JsonBody) -> List[List[Dict[str, Any]]]:
        """The sources_to_targets rows of a matrix response."""
        rows = json_result.get("sources_to_targets")
        if not isinstance(rows, list):
            raise MalformedResponseError("Valhalla matrix response has no sources_to_targets")
        return rows

    @staticmethod
    def _entry_value(matrix_entry: Dict[str, Any], key: str) -> Any:
        if not isinstance(matrix_entry, dict) or key not in matrix_entry:
            raise MalformedResponseError(f"Matrix entry has no {key!r} key: {matrix_entry!r}")
        return matrix_entry[key]

    def duration_value_is_null(self, matrix_entry: Dict[str, Any]) -> bool:
        return self._entry_value(matrix_entry, "time") is None

    def distance_value_is_null(self, matrix_entry: Dict[str, Any]) -> bool:
        return self._entry_value(matrix_entry, "distance") is None

    def get_duration_value(self, matrix_entry: Dict[str, Any]) -> int:
        """Duration in seconds, as sent by Valhalla. Check for null first."""
        value = self._entry_value(matrix_entry, "time")
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise MalformedResponseError(f"Unexpected matrix time value: {value!r}")
        return value

    def get_distance_value(self, matrix_entry: Dict[str, Any]) -> int:
        """
        Distance in meters. Valhalla reports kilometers, so the value is
        scaled by 1000 and rounded half away from zero. Rounding works on
        the decimal text of the value so 1.2345 km gives 1235 m.
        """
        value = self._entry_value(matrix_entry, "distance")
        if not _is_number(value) or not math.isfinite(value):
            raise MalformedResponseError(f"Unexpected matrix distance value: {value!r}")
        return _round_half_up(value, KM_TO_M)

    def get_summary(self, result: JsonBody) -> Tuple[Optional[int], Optional[int]]:
        """
        Route totals from trip.summary as (seconds, meters).
        Either value is None when Valhalla left it out.
        """
        trip = result.get("trip") if isinstance(result, dict) else None
        if not isinstance(trip, dict):
            raise MalformedResponseError("Valhalla route response has no trip")

        summary = trip.get("summary")
        if summary is None:
            return None, None
        if not isinstance(summary, dict):
            raise MalformedResponseError(f"Unexpected trip.summary value: {summary!r}")

        totals = []
        for key, scale in (("time", 1), ("length", KM_TO_M)):
            value = summary.get(key)
            if value is None:
                totals.append(None)
                continue
            if not _is_number(value) or not math.isfinite(value) or value < 0:
                raise MalformedResponseError(f"Unexpected trip.summary.{key} value: {value!r}")
            totals.append(_round_half_up(value, scale))
        return totals[0], totals[1]

    #----------------
    # GeometryMerger
    #----------------
    @staticmethod
    def _legs(result: JsonBody) -> List[Dict[str, Any]]:
        trip = result.get("trip") if isinstance(result, dict) else None
        legs = trip.get("legs") if isinstance(trip, dict) else None
        if not isinstance(legs, list):
            raise MalformedResponseError("Valhalla route response has no trip.legs")
        return legs

    def get_legs_number(self, result: JsonBody) -> int:
        return len(self._legs(result))

    def get_geometry(self, result: JsonBody) -> str:
        """
        Merge the per-leg shapes into one polyline.

        Valhalla returns one shape per leg, encoded with 6 digits; we
        re-encode the whole route with 5 digits to match the rest of our
        output. Asking Valhalla for a single shape is not an option since
        every location must be sent as a break.
        """
        shapes = []
        for index, leg in enumerate(self._legs(result)):
            shape = leg.get("shape") if isinstance(leg, dict) else None
            if not isinstance(shape, str):
                raise MalformedResponseError(f"Valhalla leg {index} has no shape")
            shapes.append(shape)

        geometry, point_count = convert_precision(
            shapes,
            source_precision=VALHALLA_POLYLINE_PRECISION,
            target_precision=POLYLINE_PRECISION,
        )
        logger.debug(f"Merged {len(shapes)} legs into {point_count} points")
        return geometry
