#Marks routing as a package.
#Re-exports the public API (ValhallaWrapper, ValhallaClient, models, errors)
#so other modules import from routing without knowing internal file names.
#No business logic.

from .errors import (
    InvalidServiceError,
    MalformedResponseError,
    RoutingBackendError,
    RoutingConnectionError,
    RoutingError,
    UnfoundRouteError,
)
from .models import LatLon, Location, MatrixCell, Matrices, RouteResult, Server, ServiceKind
from .costing import TruckCosting, default_truck_costing
from .valhalla_wrapper import ValhallaWrapper
from .valhalla_client import ValhallaClient

__all__ = [
           "ValhallaWrapper",
           "ValhallaClient",
             "Location",
             "LatLon",
             "ServiceKind",
             "Server",
             "MatrixCell",
             "Matrices",
             "RouteResult",
             "TruckCosting",
             "default_truck_costing",
             "RoutingError",
             "InvalidServiceError",
             "RoutingBackendError",
             "UnfoundRouteError",
             "MalformedResponseError",
             "RoutingConnectionError",
             ]
