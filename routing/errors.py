#Purpose: Error taxonomy for the routing adapter.
#Every failure the adapter raises derives from RoutingError so callers can
#catch the whole family in one place. Polyline codec errors are not wrapped.


class RoutingError(Exception):
    """Base class for routing adapter errors."""
    pass


class InvalidServiceError(RoutingError, ValueError):
    """Raised when a caller asks for a service the adapter does not serve."""

    def __init__(self, service):
        self.service = service
        super().__init__(f"Invalid routing service: {service!r}")


class RoutingBackendError(RoutingError):
    """
    The backend explicitly reported a failure (bad request, size limit
    exceeded, unroutable trip). Carries the service name and the message
    sent by the backend, which may be empty.
    """

    def __init__(self, service: str, message: str = ""):
        self.service = service
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        if self.message:
            return f"Valhalla {self.service} error ({self.message})."
        return f"Valhalla {self.service} error."


class UnfoundRouteError(RoutingBackendError):
    """Raised when a matrix holds unreachable cells for some location."""
    pass


class MalformedResponseError(RoutingError):
    """Expected field missing or wrongly typed in a backend response."""
    pass


class RoutingConnectionError(RoutingError):
    """The transport could not reach the routing server."""
    pass
