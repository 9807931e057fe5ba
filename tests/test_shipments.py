from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.core.errors import ResolutionFailure, UpstreamError, ValidationError
from app.core.settings import Settings
from app.services import carrier, shipments
from app.services.carrier import CONTRACT_CLIENTS, PRINT, SHIPMENT, SITE_SEARCH, CarrierResponse
from conftest import FakeCarrier, sites

CREATED = CarrierResponse(ok=True, status=200, body={"id": "299000111", "parcels": [{"id": "299000111001"}]})


def door_payload(**recipient):
    return {
        "userName": "user",
        "password": "secret",
        "shipment": {
            "sender": {"clientId": 111},
            "recipient": {"clientName": "Ivan", "phone": "0888", "city": "гр. Ямбол", "postCode": "8600", **recipient},
            "service": {"serviceId": 505, "pickupDate": "2026-10-20"},
            "content": {"parcelsCount": 1, "totalWeight": 1},
            "payment": {"courierServicePayer": "contract_client"},
        },
    }


def test_missing_credentials_fail_before_any_call():
    with pytest.raises(ValidationError):
        shipments.create_shipment({"recipient": {"pickupOfficeId": 1}}, Settings(speedy_username="", speedy_password=""))


def test_office_delivery_skips_resolution(settings):
    carrier = FakeCarrier([CREATED])
    payload = {"sender": {"clientId": 1}, "recipient": {"pickupOfficeId": 5, "name": "x"}}

    out = shipments.create_shipment(payload, settings, client=carrier)

    assert out["id"] == "299000111"
    assert "siteResolution" not in out
    assert [path for path, _ in carrier.calls] == [SHIPMENT]
    sent = carrier.calls[0][1]
    assert sent["recipient"] == {"pickupOfficeId": 5, "clientName": "CLIENT"}
    assert sent["sender"]["dropoffOfficeId"] == 55


def test_door_delivery_resolves_site_then_submits(settings):
    carrier = FakeCarrier([sites({"id": 42, "postCode": "8600"}), CREATED])

    out = shipments.create_shipment(door_payload(), settings, client=carrier)

    assert [path for path, _ in carrier.calls] == [SITE_SEARCH, SHIPMENT]
    sent = carrier.calls[1][1]
    assert sent["recipient"]["address"] == {"postCode": "8600", "siteId": 42}
    assert "_pendingSite" not in sent
    assert "shipment" not in sent
    assert sent["service"]["pickUpDate"] == "2026-10-20"
    assert sent["payment"]["courierServicePayer"] == "SENDER"
    assert sent["content"]["package"] == "BOX"
    assert out["siteResolution"]["siteId"] == 42
    assert out["id"] == "299000111"


def test_door_delivery_with_known_site_does_not_search(settings):
    carrier = FakeCarrier([CREATED])

    shipments.create_shipment(door_payload(siteId=68134), settings, client=carrier)

    assert [path for path, _ in carrier.calls] == [SHIPMENT]


def test_door_delivery_without_city_or_zip_is_rejected(settings):
    carrier = FakeCarrier()
    payload = {"recipient": {"clientName": "A", "addressNote": "somewhere"}}

    with pytest.raises(ValidationError):
        shipments.create_shipment(payload, settings, client=carrier)
    assert carrier.calls == []


def test_unresolved_site_is_a_hard_failure(settings):
    carrier = FakeCarrier([sites() for _ in range(5)])

    with pytest.raises(ResolutionFailure) as excinfo:
        shipments.create_shipment(door_payload(), settings, client=carrier)

    err = excinfo.value
    assert err.status_code == 422
    assert len(err.attempts) == 5
    assert err.to_dict()["city"] == "гр. Ямбол"
    assert all(path == SITE_SEARCH for path, _ in carrier.calls)


def test_fakeerror_on_search_keeps_fakestatus(settings):
    carrier = FakeCarrier([CarrierResponse(ok=False, status=503, raw="down")])

    with pytest.raises(ResolutionFailure) as excinfo:
        shipments.create_shipment(door_payload(), settings, client=carrier)

    assert excinfo.value.status_code == 503


def test_fakerejection_is_relayed(settings):
    rejected = CarrierResponse(ok=False, status=400, body={"error": {"message": "Invalid recipient"}})
    carrier = FakeCarrier([rejected])

    with pytest.raises(UpstreamError) as excinfo:
        shipments.create_shipment({"recipient": {"pickupOfficeId": 1}}, settings, client=carrier)

    assert excinfo.value.status_code == 400
    assert excinfo.value.to_dict() == {"error": {"message": "Invalid recipient"}}


def test_print_labels_returns_pdf(settings):
    carrier = FakeCarrier([CarrierResponse(ok=True, status=200, content=b"%PDF")])

    pdf = shipments.print_labels({"shipments": ["A1"]}, settings, client=carrier)

    assert pdf == b"%PDF"
    assert carrier.calls[0] == (
        PRINT,
        {"parcels": [{"parcel": {"id": "A1"}}], "paperSize": "A6", "additionalWaybillSenderCopy": "NONE"},
    )


def test_print_labels_non_pdf_is_upstream_error(settings):
    carrier = FakeCarrier([CarrierResponse(ok=False, status=200, raw='{"error": {}}')])

    with pytest.raises(UpstreamError) as excinfo:
        shipments.print_labels(["A1"], settings, client=carrier)

    assert excinfo.value.status_code == 502
    assert excinfo.value.body == '{"error": {}}'


def test_passthrough(settings):
    carrier = FakeCarrier([CarrierResponse(ok=True, status=200, body={"clients": []})])

    assert shipments.passthrough(CONTRACT_CLIENTS, {}, settings, client=carrier) == {"clients": []}


def test_carrier_for_uses_configured_credentials(settings):
    client = shipments.carrier_for({}, settings)

    assert client.credentials.username == "user"
    assert client.base_url == settings.speedy_base_url


def test_carrier_for_reads_credentials_inside_shipment_envelope(settings):
    payload = {"shipment": {"userName": "req-user", "password": "req-pass", "recipient": {"pickupOfficeId": 5}}}

    client = shipments.carrier_for(payload, settings)

    assert client.credentials.username == "req-user"
    assert client.credentials.password == "req-pass"


def test_envelope_credentials_work_without_configured_account():
    payload = {"shipment": {"userName": "req-user", "password": "req-pass"}}

    client = shipments.carrier_for(payload, Settings(speedy_username="", speedy_password=""))

    assert client.credentials.username == "req-user"


def test_envelope_credentials_are_sent_with_the_shipment(settings, monkeypatch):
    sent = {}

    def fake_post(url, **kwargs):
        sent.update(kwargs["json"])
        return SimpleNamespace(status_code=200, text='{"id": "299000111"}', headers={})

    monkeypatch.setattr(carrier.requests, "post", fake_post)
    payload = {"shipment": {"userName": "req-user", "password": "req-pass", "recipient": {"pickupOfficeId": 5}}}

    shipments.create_shipment(payload, settings)

    assert sent["userName"] == "req-user"
    assert sent["password"] == "req-pass"


def test_oversized_dropoff_point_is_submitted_as_client_id(settings):
    fake = FakeCarrier([CREATED])
    payload = {"sender": {"dropoffPointId": 9999999999}, "recipient": {"pickupOfficeId": 5}}

    shipments.create_shipment(payload, settings, client=fake)

    sender = fake.calls[0][1]["sender"]
    assert sender["clientId"] == 9999999999
    assert sender["dropoffPointId"] == 55
