"""
Tests for the invoice store contract, run against both implementations.
"""
from decimal import Decimal

import pytest

from conftest import GATEWAY_ADDRESS
from errors import DuplicatePayAmount, InvoiceNotFound
from models import Invoice, InvoiceStatus


def _invoice(requested="10", tag="0.001"):
    return Invoice.new(Decimal(requested), Decimal(tag), GATEWAY_ADDRESS)


class TestInvoiceStore:

    def test_create_and_get(self, store):
        created = store.create(_invoice())

        fetched = store.get(created.id)
        assert fetched.id == created.id
        assert fetched.pay_amount == Decimal("10.001")
        assert fetched.status == InvoiceStatus.PENDING
        assert fetched.tx_hash is None

    def test_get_unknown_raises(self, store):
        with pytest.raises(InvoiceNotFound):
            store.get("does-not-exist")

    def test_duplicate_pending_pay_amount_rejected(self, store):
        store.create(_invoice("10", "0.002"))

        # different request/tag split, same pay amount
        with pytest.raises(DuplicatePayAmount):
            store.create(_invoice("10.001", "0.001"))

        assert len(store.list_pending()) == 1

    def test_confirm_is_idempotent(self, store):
        invoice = store.create(_invoice())

        assert store.confirm(invoice.id, "0xaaa") is True
        assert store.confirm(invoice.id, "0xbbb") is False

        confirmed = store.get(invoice.id)
        assert confirmed.status == InvoiceStatus.CONFIRMED
        assert confirmed.tx_hash == "0xaaa"
        assert confirmed.confirmed_at is not None

    def test_confirm_unknown_raises(self, store):
        with pytest.raises(InvoiceNotFound):
            store.confirm("does-not-exist", "0xaaa")

    def test_confirmed_invoice_releases_pay_amount(self, store):
        first = store.create(_invoice())
        store.confirm(first.id, "0xaaa")

        second = store.create(_invoice())

        assert second.pay_amount == first.pay_amount
        assert [inv.id for inv in store.list_pending()] == [second.id]

    def test_list_pending_excludes_confirmed(self, store):
        a = store.create(_invoice("1", "0.001"))
        b = store.create(_invoice("2", "0.001"))
        store.confirm(a.id, "0xaaa")

        assert [inv.id for inv in store.list_pending()] == [b.id]

    def test_list_filters_by_status_newest_first(self, store):
        a = store.create(_invoice("1", "0.001"))
        b = store.create(_invoice("2", "0.001"))
        store.confirm(a.id, "0xaaa")

        assert [inv.id for inv in store.list(status=InvoiceStatus.CONFIRMED)] == [a.id]
        assert {inv.id for inv in store.list()} == {a.id, b.id}
