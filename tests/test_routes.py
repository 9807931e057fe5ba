import asyncio
import json
import unittest
from types import SimpleNamespace
from unittest.mock import patch

from app.core.errors import ResolutionFailure, UpstreamError, ValidationError
from app.main import app, proxy_error_handler
from app.models import SiteResolveReq
from app.routers import clients, health, labels, location, shipments
from app.services.carrier import CONTRACT_CLIENTS, OFFICE_SEARCH, SITE_SEARCH
from app.services.site_resolver import SiteResolutionResult


def run_async(coro):
    return asyncio.run(coro)


def build_request(path="/shipment"):
    return SimpleNamespace(method="POST", url=SimpleNamespace(path=path))


class TestHealthRoutes(unittest.TestCase):
    def test_health(self):
        self.assertEqual(run_async(health.health()), {"ok": True})
        self.assertIn("speedy-proxy", run_async(health.index()))


class TestPassthroughRoutes(unittest.TestCase):
    def test_location_and_client_routes_forward_to_carrier_paths(self):
        with patch.object(location, "passthrough", side_effect=lambda path, body: {"path": path}) as p_loc, \
                patch.object(clients, "passthrough", side_effect=lambda path, body: {"path": path}):
            self.assertEqual(location.location_site({"name": "Sofia"}), {"path": SITE_SEARCH})
            self.assertEqual(location.location_offices_by_site({"siteId": 1}), {"path": OFFICE_SEARCH})
            self.assertEqual(location.location_office({"siteId": 1}), {"path": OFFICE_SEARCH})
            self.assertEqual(clients.client_contract({}), {"path": CONTRACT_CLIENTS})
            p_loc.assert_any_call(SITE_SEARCH, {"name": "Sofia"})

    def test_site_resolve_route(self):
        result = SiteResolutionResult(site_id=42, match={"id": 42}, attempt={"name": "Ямбол"}, candidates_seen=1)
        result.attempts.append({"name": "Ямбол"})
        body = SiteResolveReq.model_validate({"name": "гр. Ямбол", "postCode": 8600, "userName": "u", "password": "p"})
        with patch.object(location.SiteResolver, "resolve", return_value=result) as resolve:
            resp = location.location_site_resolve(body)
        resolve.assert_called_once_with("гр. Ямбол", "8600")
        self.assertTrue(resp.resolved)
        self.assertEqual(resp.site_id, 42)


class TestShipmentRoutes(unittest.TestCase):
    def test_shipment_route_delegates(self):
        with patch.object(shipments, "create_shipment", return_value={"id": "1"}) as create:
            self.assertEqual(shipments.shipment_create({"a": 1}), {"id": "1"})
        create.assert_called_once_with({"a": 1})

    def test_print_route_returns_pdf(self):
        with patch.object(labels, "print_labels", return_value=b"%PDF"):
            resp = labels.print_label({"shipments": ["A1"]})
        self.assertEqual(resp.body, b"%PDF")
        self.assertEqual(resp.media_type, "application/pdf")
        self.assertIn("speedy-label.pdf", resp.headers["content-disposition"])


class TestErrorHandler(unittest.TestCase):
    def render(self, exc):
        resp = run_async(proxy_error_handler(build_request(), exc))
        return resp.status_code, json.loads(resp.body)

    def test_validation_error(self):
        self.assertEqual(self.render(ValidationError("Missing credentials")), (400, {"error": "Missing credentials"}))

    def test_upstream_error_relays_carrier_body(self):
        status, body = self.render(UpstreamError(401, {"error": {"code": 7}}))
        self.assertEqual(status, 401)
        self.assertEqual(body, {"error": {"code": 7}})

    def test_upstream_error_with_raw_text(self):
        self.assertEqual(self.render(UpstreamError(502, "bad gateway")), (502, {"error": "bad gateway"}))

    def test_resolution_failure_carries_attempts(self):
        status, body = self.render(ResolutionFailure("Ямбол", "8600", [{"name": "Ямбол"}], {"sites": []}))
        self.assertEqual(status, 422)
        self.assertEqual(body["attempts"], [{"name": "Ямбол"}])
        self.assertEqual(body["lastResponse"], {"sites": []})
        self.assertEqual(body["postCode"], "8600")


class TestAppWiring(unittest.TestCase):
    def test_routes_are_registered(self):
        paths = {route.path for route in app.routes}
        for path in (
            "/",
            "/health",
            "/location/site",
            "/location/offices-by-site",
            "/location/office",
            "/location/site/resolve",
            "/client/contract",
            "/shipment",
            "/print",
        ):
            self.assertIn(path, paths)


if __name__ == "__main__":
    unittest.main()
