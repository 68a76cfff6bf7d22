"""
Tests for the catalog HTTP clients over a mocked transport.
"""
import asyncio
from datetime import datetime

import httpx
import pytest

from discovery_service import clients
from discovery_service.errors import NotFound, UpstreamFailure

from .helpers import make_provider


class _Requests(list):
    def __init__(self):
        super().__init__()
        self.routes = {}


@pytest.fixture
def catalog(monkeypatch):
    """Route catalog calls to a per-test handler; returns the list of seen requests."""
    seen = _Requests()
    routes = seen.routes
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        respond = routes.get(request.url.path)
        if respond is None:
            return httpx.Response(404)
        return respond(request)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(clients.httpx, "AsyncClient", client_factory)
    return seen


def _json(payload, status=200):
    return lambda request: httpx.Response(status, json=payload)


class TestFetchProviders:
    def test_parses_profiles(self, catalog):
        catalog.routes["/providers"] = _json([make_provider("p1").model_dump(mode="json")])

        providers = asyncio.run(clients.fetch_providers())

        assert [p.id for p in providers] == ["p1"]

    def test_missing_listing_is_upstream_failure(self, catalog):
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_providers())

    def test_server_error(self, catalog):
        catalog.routes["/providers"] = _json({"detail": "boom"}, status=500)
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_providers())

    def test_timeout(self, catalog):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        catalog.routes["/providers"] = slow
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_providers())

    def test_unreachable(self, catalog):
        def refused(request):
            raise httpx.ConnectError("connection refused", request=request)

        catalog.routes["/providers"] = refused
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_providers())

    def test_body_is_not_json(self, catalog):
        catalog.routes["/providers"] = lambda request: httpx.Response(200, content=b"<html>oops</html>")
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_providers())

    def test_malformed_profile(self, catalog):
        catalog.routes["/providers"] = _json([{"id": "p1", "hourly_rate": -5}])
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_providers())


class TestFetchProvider:
    def test_found(self, catalog):
        catalog.routes["/providers/p7"] = _json(make_provider("p7").model_dump(mode="json"))
        assert asyncio.run(clients.fetch_provider("p7")).id == "p7"

    def test_unknown_is_not_found(self, catalog):
        with pytest.raises(NotFound):
            asyncio.run(clients.fetch_provider("p404"))

    def test_malformed(self, catalog):
        catalog.routes["/providers/p7"] = _json({"name": "no id"})
        with pytest.raises(UpstreamFailure):
            asyncio.run(clients.fetch_provider("p7"))


class TestFetchBookingHistory:
    def test_truncated_to_limit(self, catalog):
        bookings = [{"booking_id": f"b{i}", "category": "cooking", "review_rating": 5} for i in range(12)]
        catalog.routes["/customers/c1/bookings"] = _json(bookings)

        history = asyncio.run(clients.fetch_booking_history("c1"))

        assert [b.booking_id for b in history] == [f"b{i}" for i in range(10)]
        assert catalog[0].url.params["limit"] == "10"

    def test_unknown_customer(self, catalog):
        with pytest.raises(NotFound):
            asyncio.run(clients.fetch_booking_history("nobody"))


class TestFetchCommitments:
    def test_window_is_sent(self, catalog):
        catalog.routes["/providers/p1/commitments"] = _json(
            [{"booking_id": "bk1", "scheduled_at": "2026-10-20T10:00:00Z"}]
        )
        start, end = datetime(2026, 10, 19), datetime(2026, 11, 2)

        commitments = asyncio.run(clients.fetch_commitments("p1", start, end))

        assert [c.booking_id for c in commitments] == ["bk1"]
        assert catalog[0].url.params["start"] == start.isoformat()
        assert catalog[0].url.params["end"] == end.isoformat()
