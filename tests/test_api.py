"""
Tests for the HTTP API.
"""
from dataclasses import replace
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from conftest import API_KEY, GATEWAY_ADDRESS, OTHER_ADDRESS, TOKEN_ADDRESS
from errors import ChainError
from main import create_app
from services.tag_allocator import TagAllocator


class TestRoot:

    def test_root_is_plain_text(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "USDT gateway running"
        assert response.headers["content-type"].startswith("text/plain")

    def test_root_needs_no_key(self, gateway):
        with TestClient(create_app(gateway=gateway, api_key=API_KEY)) as anonymous:
            assert anonymous.get("/").status_code == 200


class TestAuth:

    @pytest.mark.parametrize("headers", [{}, {"x-api-key": "wrong"}, {"x-api-key": ""}])
    def test_bad_or_missing_key(self, gateway, headers):
        with TestClient(create_app(gateway=gateway, api_key=API_KEY)) as anonymous:
            response = anonymous.post("/api/invoices", json={"amount": "10"}, headers=headers)

        assert response.status_code == 401


class TestInvoices:

    def test_create_invoice(self, client):
        response = client.post("/api/invoices", json={"amount": 10})

        assert response.status_code == 201
        data = response.json()
        assert data["requested_amount"] == "10.000"
        assert data["tag"] == "0.001"
        assert data["pay_amount"] == "10.001"
        assert data["status"] == "pending"
        assert data["to_address"] == GATEWAY_ADDRESS
        assert data["tx_hash"] is None

    def test_same_amount_twice(self, client):
        first = client.post("/api/invoices", json={"amount": "10"}).json()
        second = client.post("/api/invoices", json={"amount": "10"}).json()

        assert first["pay_amount"] == "10.001"
        assert second["pay_amount"] == "10.002"

    @pytest.mark.parametrize("body", [{}, {"amount": 0}, {"amount": "-1"}, {"amount": "abc"}])
    def test_invalid_amount(self, client, body):
        response = client.post("/api/invoices", json=body)

        assert response.status_code == 400

    def test_oversized_amount_is_rejected(self, client):
        response = client.post("/api/invoices", json={"amount": "1e20"})

        assert response.status_code == 400
        assert client.get("/api/invoices").json()["total"] == 0

    def test_largest_amount_is_stored(self, client):
        response = client.post("/api/invoices", json={"amount": "9000000000000000"})

        assert response.status_code == 201
        assert response.json()["pay_amount"] == "9000000000000000.001"

    def test_malformed_body(self, client):
        response = client.post(
            "/api/invoices", content="not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400

    def test_capacity_exhausted(self, gateway):
        small = replace(gateway, allocator=TagAllocator(Decimal("0.001"), Decimal("0.002")))
        app = create_app(gateway=small, api_key=API_KEY)
        with TestClient(app, headers={"x-api-key": API_KEY}) as client:
            client.post("/api/invoices", json={"amount": "1"})
            client.post("/api/invoices", json={"amount": "2"})
            response = client.post("/api/invoices", json={"amount": "3"})

        assert response.status_code == 503
        assert response.headers["retry-after"] == "12"

    def test_get_invoice(self, client):
        created = client.post("/api/invoices", json={"amount": "7.5"}).json()

        response = client.get(f"/api/invoices/{created['id']}")

        assert response.status_code == 200
        assert response.json()["pay_amount"] == "7.501"

    def test_get_unknown_invoice(self, client):
        response = client.get("/api/invoices/does-not-exist")

        assert response.status_code == 404

    def test_list_by_status(self, client, gateway):
        first = client.post("/api/invoices", json={"amount": "1"}).json()
        client.post("/api/invoices", json={"amount": "2"})
        gateway.store.confirm(first["id"], "0xabc")

        pending = client.get("/api/invoices", params={"status": "pending"}).json()
        confirmed = client.get("/api/invoices", params={"status": "confirmed"}).json()
        everything = client.get("/api/invoices").json()

        assert pending["total"] == 1
        assert confirmed["total"] == 1
        assert confirmed["invoices"][0]["tx_hash"] == "0xabc"
        assert everything["total"] == 2


class TestWallet:

    def test_info(self, client):
        client.post("/api/invoices", json={"amount": "10"})

        data = client.get("/api/info").json()

        assert data["address"] == GATEWAY_ADDRESS
        assert data["usdt_contract"] == TOKEN_ADDRESS
        assert data["decimals"] == 18
        assert data["tag_step"] == "0.001"
        assert data["tag_max"] == "0.099"
        assert data["pending_invoices"] == 1
        assert data["tag_capacity"] == 99
        assert data["last_cycle"] is None

    def test_balance(self, client, chain):
        chain.balance_of.return_value = 1_500_000_000_000_000_000

        response = client.get("/api/balance")

        assert response.status_code == 200
        data = response.json()
        assert data["address"] == GATEWAY_ADDRESS
        assert Decimal(data["usdt"]) == Decimal("1.5")
        assert data["raw"] == "1500000000000000000"

    def test_balance_chain_error(self, client, chain):
        chain.balance_of.side_effect = ChainError("rpc down")

        assert client.get("/api/balance").status_code == 502

    def test_send(self, client, chain):
        chain.send_transfer.return_value = "0x" + "ab" * 32

        response = client.post("/api/send", json={"to": OTHER_ADDRESS, "amount": "2.5"})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "tx_hash": "0x" + "ab" * 32}
        chain.send_transfer.assert_called_once_with(OTHER_ADDRESS, 2_500_000_000_000_000_000)

    def test_send_keeps_full_precision(self, client, chain):
        chain.send_transfer.return_value = "0x01"

        client.post("/api/send", json={"to": OTHER_ADDRESS, "amount": "0.0001"})

        chain.send_transfer.assert_called_once_with(OTHER_ADDRESS, 100_000_000_000_000)

    @pytest.mark.parametrize("body", [
        {"to": "0x1234", "amount": "1"},
        {"amount": "1"},
        {"to": OTHER_ADDRESS, "amount": "0"},
        {"to": OTHER_ADDRESS},
    ])
    def test_send_bad_input(self, client, chain, body):
        response = client.post("/api/send", json=body)

        assert response.status_code == 400
        chain.send_transfer.assert_not_called()

    def test_send_chain_error(self, client, chain):
        chain.send_transfer.side_effect = ChainError("insufficient funds for gas")

        response = client.post("/api/send", json={"to": OTHER_ADDRESS, "amount": "1"})

        assert response.status_code == 502
        assert "send failed" in response.json()["detail"]
