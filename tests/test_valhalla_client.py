import json

import polyline
import pytest
import requests

from routing.errors import (
    MalformedResponseError,
    RoutingBackendError,
    RoutingConnectionError,
    UnfoundRouteError,
)
from routing.models import Location
from routing.settings import ValhallaSettings
from routing.valhalla_client import ValhallaClient


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def json(self):
        if isinstance(self.body, str):
            return json.loads(self.body)
        return self.body


class FakeValhalla:
    """Stands in for requests.get and records what was sent."""

    def __init__(self, body, status_code=200):
        self.response = FakeResponse(body, status_code)
        self.calls = []

    def __call__(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.response


@pytest.fixture
def client():
    return ValhallaClient(ValhallaSettings(host="valhalla.local", port="8002", profile="truck", timeout=3))


@pytest.fixture
def stops():
    return [Location(13.3888, 52.5170), Location(13.3976, 52.5294), Location(13.4100, 52.5250)]


def cell(time, distance):
    return {"time": time, "distance": distance}


def full_matrix(size, time=60, distance=1.5):
    return {"sources_to_targets": [[cell(time, distance) for _ in range(size)] for _ in range(size)]}


def test_get_matrices_converts_units(monkeypatch, client, stops):
    body = full_matrix(3, time=125, distance=2.4567)
    fake = FakeValhalla(body)
    monkeypatch.setattr("routing.valhalla_client.requests.get", fake)

    matrices = client.get_matrices(stops)

    # 1. Assert one call to the matrix endpoint with the JSON body as a param
    assert len(fake.calls) == 1
    assert fake.calls[0]["url"] == "http://valhalla.local:8002/sources_to_targets"
    assert fake.calls[0]["timeout"] == 3
    sent = json.loads(fake.calls[0]["params"]["json"])
    assert len(sent["sources"]) == 3

    # 2. Assert durations verbatim, distances in meters
    assert len(matrices) == 3
    assert matrices.durations[1][2] == 125
    assert matrices.distances[0][1] == 2457
    assert matrices.cell(2, 0).duration == 125


def test_unfound_cells_raise_by_default(monkeypatch, client, stops):
    body = full_matrix(3)
    # location 2 cannot be reached from anywhere else
    body["sources_to_targets"][0][2] = cell(None, None)
    body["sources_to_targets"][1][2] = cell(None, None)
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    with pytest.raises(UnfoundRouteError) as info:
        client.get_matrices(stops)

    assert "to location [13.41,52.525]" in info.value.message


def test_unfound_cells_stay_none_when_allowed(monkeypatch, client, stops):
    body = full_matrix(3)
    body["sources_to_targets"][0][2] = cell(None, None)
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    matrices = client.get_matrices(stops, allow_unfound=True)

    # null is never coerced to zero
    assert matrices.durations[0][2] is None
    assert matrices.distances[0][2] is None
    assert matrices.durations[2][0] == 60


def test_matrix_size_mismatch_is_malformed(monkeypatch, client, stops):
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(full_matrix(2)))

    with pytest.raises(MalformedResponseError):
        client.get_matrices(stops)


def test_backend_error_body_on_http_400(monkeypatch, client, stops):
    body = {"status_code": 400, "error": "Exceeded max locations", "error_code": 150}
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body, status_code=400))

    with pytest.raises(RoutingBackendError) as info:
        client.get_matrices(stops)

    assert info.value.service == "matrix"


def test_non_json_body_is_malformed(monkeypatch, client, stops):
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla("<html>bad gateway</html>", 502))

    with pytest.raises(MalformedResponseError):
        client.get_matrices(stops)


def test_connection_failure_is_wrapped(monkeypatch, client, stops):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("routing.valhalla_client.requests.get", refuse)

    with pytest.raises(RoutingConnectionError):
        client.get_matrices(stops)


def test_get_route_merges_geometry(monkeypatch, client, stops):
    legs = [
        [(52.517000, 13.388800), (52.520000, 13.392000), (52.529400, 13.397600)],
        [(52.529400, 13.397600), (52.527000, 13.405000), (52.525000, 13.410000)],
    ]
    body = {
        "trip": {
            "status": 0,
            "status_message": "Found route between points",
            "legs": [{"shape": polyline.encode(points, 6)} for points in legs],
            "summary": {"time": 412.7, "length": 3.1416},
        }
    }
    fake = FakeValhalla(body)
    monkeypatch.setattr("routing.valhalla_client.requests.get", fake)

    result = client.get_route(stops)

    assert fake.calls[0]["url"].endswith("/route")
    assert result.legs == 2
    assert len(polyline.decode(result.geometry, 5)) == 5
    assert result.duration == 413
    assert result.distance == 3142


def test_get_route_leg_count_mismatch(monkeypatch, client, stops):
    body = {"trip": {"status": 0, "legs": [{"shape": polyline.encode([(1.0, 2.0), (1.1, 2.1)], 6)}]}}
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    with pytest.raises(MalformedResponseError):
        client.get_route(stops)


def test_get_route_trip_failure(monkeypatch, client, stops):
    body = {"trip": {"status": 442, "status_message": "No path could be found for input"}}
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    with pytest.raises(RoutingBackendError) as info:
        client.get_route(stops)

    assert info.value.service == "route"


def test_get_route_needs_two_locations(client):
    with pytest.raises(ValueError):
        client.get_route([Location(13.3888, 52.5170)])


def test_route_duration_rounds_half_away_from_zero(monkeypatch, client, stops):
    legs = [
        [(52.517000, 13.388800), (52.529400, 13.397600)],
        [(52.529400, 13.397600), (52.525000, 13.410000)],
    ]
    body = {
        "trip": {
            "status": 0,
            "legs": [{"shape": polyline.encode(points, 6)} for points in legs],
            "summary": {"time": 412.5, "length": 2.0005},
        }
    }
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    result = client.get_route(stops)

    assert result.duration == 413
    assert result.distance == 2001


def route_body(summary):
    legs = [[(52.5, 13.3), (52.6, 13.4)], [(52.6, 13.4), (52.7, 13.5)]]
    return {
        "trip": {
            "status": 0,
            "legs": [{"shape": polyline.encode(points, 6)} for points in legs],
            "summary": summary,
        }
    }


@pytest.mark.parametrize("summary", [[1], {"time": "412", "length": 1.0}, {"time": 10, "length": float("inf")}])
def test_route_with_malformed_summary(monkeypatch, client, stops, summary):
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(route_body(summary)))

    with pytest.raises(MalformedResponseError):
        client.get_route(stops)


def test_route_with_partial_summary(monkeypatch, client, stops):
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(route_body({"time": 10})))

    result = client.get_route(stops)

    # a missing total is not an error
    assert result.duration == 10
    assert result.distance is None


def test_unfound_tie_reports_lowest_index_first(monkeypatch, client, stops):
    body = full_matrix(3)
    # one null cell 2 -> 0: "from 2" and "to 0" both count 1,
    # the scan reaches location 0 first
    body["sources_to_targets"][2][0] = cell(None, None)
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    with pytest.raises(UnfoundRouteError) as info:
        client.get_matrices(stops)

    assert info.value.message == "Unfound route(s) to location [13.3888,52.517]"


def test_unfound_tie_at_same_index_reports_from(monkeypatch, client, stops):
    body = full_matrix(3)
    body["sources_to_targets"][1][1] = cell(None, None)
    monkeypatch.setattr("routing.valhalla_client.requests.get", FakeValhalla(body))

    with pytest.raises(UnfoundRouteError) as info:
        client.get_matrices(stops)

    assert info.value.message == "Unfound route(s) from location [13.3976,52.5294]"
