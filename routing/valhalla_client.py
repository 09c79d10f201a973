#Purpose: The Valhalla "client".
#Sole responsibility: send wrapper-built queries over HTTP and return normalized outputs.
#Encapsulates transport details:
#URL + json= parameter (requests does the encoding)
#timeouts and connection errors
#turning sources_to_targets rows into duration/distance matrices
#checking leg counts before merging route geometry
#It should not contain costing choices, caching or dispatch rules.

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from routing.errors import MalformedResponseError, RoutingConnectionError, UnfoundRouteError
from routing.models import Location, Matrices, RouteResult, ServiceKind
from routing.settings import ValhallaSettings, settings_from_env
from routing.valhalla_wrapper import ValhallaWrapper

logger = logging.getLogger(__name__)


class ValhallaClient:
    """
    Valhalla Client

    Sole responsibility:
    - Talk to Valhalla via HTTP
    - Let ValhallaWrapper build queries and validate responses
    - Return normalized outputs (seconds, meters, precision 5 polyline)

    """
    def __init__(self, settings: Optional[ValhallaSettings] = None, wrapper: Optional[ValhallaWrapper] = None):
        self.settings = settings or settings_from_env()
        self.timeout = self.settings.timeout #the time to wait for a response from Valhalla before giving up
        self.wrapper = wrapper or ValhallaWrapper(self.settings.profile, self.settings.server)

    #----------------
    # Transport
    #----------------
    def run_query(self, locations: Sequence[Location], service: Union[ServiceKind, str]) -> Dict[str, Any]:
        """
        Send one matrix/route query and return the validated JSON body.
        """
        kind = self.wrapper.service_kind(service)
        url = self.wrapper.service_url(kind)
        payload = self.wrapper.build_payload(locations, kind)

        started = time.perf_counter()
        try:
            response = requests.get(
                url,
                params={"json": payload},
                headers={"Accept": "*/*", "Connection": "close"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to reach Valhalla at {url}: {e}")
            raise RoutingConnectionError(f"Failed to connect to {self.settings.host}:{self.settings.port}") from e

        elapsed = (time.perf_counter() - started) * 1000
        logger.info(
            f"Valhalla {kind.value} locations={len(locations)} status={response.status_code} latency={elapsed:.1f}ms"
        )

        # Valhalla puts its error details in a JSON body even on 4xx, so the
        # body is parsed before looking at the HTTP status.
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Valhalla {kind.value} response is not JSON (HTTP {response.status_code})"
            ) from e

        self.wrapper.check_response(data, kind)
        return data

    #----------------
    # Matrix service
    #----------------
    def get_matrices(self, locations: Sequence[Location], *, allow_unfound: bool = False) -> Matrices:
        """
        Full N x N durations (s) and distances (m) for the given locations.

        Null cells stay None. Unless allow_unfound is set, any null cell
        raises UnfoundRouteError naming the location that has the most
        unfound routes, either from it or to it.
        """
        data = self.run_query(locations, ServiceKind.MATRIX)
        rows = self.wrapper.matrix_rows(data)

        size = len(locations)
        if len(rows) != size or any(len(row) != size for row in rows):
            raise MalformedResponseError(f"Expected a {size}x{size} matrix from Valhalla")

        durations: List[List[Optional[int]]] = [[None] * size for _ in range(size)]
        distances: List[List[Optional[int]]] = [[None] * size for _ in range(size)]
        unfound_from = [0] * size
        unfound_to = [0] * size

        for i, row in enumerate(rows):
            for j, entry in enumerate(row):
                if self.wrapper.duration_value_is_null(entry) or self.wrapper.distance_value_is_null(entry):
                    unfound_from[i] += 1
                    unfound_to[j] += 1
                    continue
                durations[i][j] = self.wrapper.get_duration_value(entry)
                distances[i][j] = self.wrapper.get_distance_value(entry)

        if not allow_unfound:
            check_unfound(locations, unfound_from, unfound_to)

        return Matrices(durations=durations, distances=distances)

    #----------------
    # Route service
    #----------------
    def get_route(self, locations: Sequence[Location]) -> RouteResult:
        """
        Route through every location in order (each one a hard stop).

        Returns:
            RouteResult with the merged polyline and, when Valhalla sent a
            trip summary, the total duration (s) and distance (m).
        """
        if len(locations) < 2:
            raise ValueError("At least two locations are required to compute a route.")

        data = self.run_query(locations, ServiceKind.ROUTE)

        legs = self.wrapper.get_legs_number(data)
        if legs != len(locations) - 1:
            raise MalformedResponseError(
                f"Valhalla returned {legs} legs for {len(locations)} locations"
            )

        duration, distance = self.wrapper.get_summary(data)

        return RouteResult(
            geometry=self.wrapper.get_geometry(data),
            legs=legs,
            duration=duration,
            distance=distance,
        )


def check_unfound(locations: Sequence[Location], unfound_from: List[int], unfound_to: List[int]) -> None:
    """
    Raise UnfoundRouteError for the location with the most unfound routes.

    Locations are scanned in input order and the first one reaching the
    maximum count is reported. At the same index "from" wins over "to".
    """
    worst = max(unfound_from + unfound_to, default=0)
    if worst == 0:
        return

    for index in range(len(locations)):
        if unfound_from[index] == worst:
            direction = "from"
            break
        if unfound_to[index] == worst:
            direction = "to"
            break

    logger.warning(f"Valhalla found no route {direction} location {index} ({worst} cells)")
    raise UnfoundRouteError(
        ServiceKind.MATRIX.value,
        f"Unfound route(s) {direction} location {locations[index]}",
    )
