from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from obscura import http_server
from obscura.service.relay.authorization import open_cleartext

from conftest import TEST_CONTEXT
from test_relay_service import signed_request


@pytest.fixture
def client(relay_server) -> TestClient:
    return TestClient(relay_server)


def _body(request: dict) -> dict:
    body = dict(request)
    body["handle_contract_pairs"] = [
        {"handle": h, "contract_address": c} for h, c in request["handle_contract_pairs"]
    ]
    return body


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "ready": True}


def test_relay_key_matches_service(client, relay) -> None:
    response = client.get("/relay_key")
    assert response.status_code == 200
    assert response.json()["public_key"] == relay.public_key


def test_relay_key_before_initialization() -> None:
    http_server.state.relay = None
    response = TestClient(http_server.app).get("/relay_key")
    assert response.status_code == 503


def test_health_reports_not_ready_before_initialization() -> None:
    http_server.state.relay = None
    response = TestClient(http_server.app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "ready": False}


def test_user_decrypt_round_trip(client, ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, y_handle = ledger.get_position(alice)
    request, keypair = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT), (y_handle, TEST_CONTEXT)])

    response = client.post("/user_decrypt", json=_body(request))

    assert response.status_code == 200
    results = response.json()["results"]
    assert 1 <= open_cleartext(results[x_handle], keypair.private_key) <= 9
    assert 1 <= open_cleartext(results[y_handle], keypair.private_key) <= 9


def test_expired_authorization_is_401(client, ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT)], start=1_000_000_000, days=1)

    response = client.post("/user_decrypt", json=_body(request))

    assert response.status_code == 401
    assert response.json()["error"] == "AuthorizationExpired"


def test_missing_grant_is_403(client, ledger, relay, alice, bob_key, bob) -> None:
    ledger.join(alice)
    ledger.join(bob)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, bob_key, bob, [(x_handle, TEST_CONTEXT)])

    response = client.post("/user_decrypt", json=_body(request))

    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized"


def test_bad_signature_is_403(client, ledger, relay, alice_key, alice, bob_key) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, bob_key, alice, [(x_handle, TEST_CONTEXT)])

    response = client.post("/user_decrypt", json=_body(request))

    assert response.status_code == 403
    assert response.json()["error"] == "InvalidSignature"


def test_malformed_handle_is_400(client, ledger) -> None:
    response = client.post("/public_decrypt", json={"handles": ["0xdeadbeef"]})

    assert response.status_code == 400
    assert response.json()["error"] == "MalformedHandle"


def test_missing_fields_are_422(client) -> None:
    response = client.post("/user_decrypt", json={"public_key": "00"})
    assert response.status_code == 422


def test_public_decrypt_after_disclose(client, ledger, alice) -> None:
    ledger.join(alice)
    identity_handle = ledger.get_identity_handle(alice)

    hidden = client.post("/public_decrypt", json={"handles": [identity_handle]})
    assert hidden.status_code == 403

    ledger.disclose(alice)
    revealed = client.post("/public_decrypt", json={"handles": [identity_handle]})
    assert revealed.status_code == 200
    assert revealed.json() == {"results": {identity_handle: alice.lower()}}
