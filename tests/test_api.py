"""Tests for the HTTP surface."""

from decimal import Decimal
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

from bankboeker.main import create_app
from bankboeker.models import BankTransactionStatus
from bankboeker.services.bank_automation import BankAutomationService
from tests.factories import BankRuleFactory, BankTransactionFactory, ContactFactory, InvoiceFactory


@pytest_asyncio.fixture
async def client(test_settings, session_maker):
    # ASGITransport skips the lifespan, so wire app state by hand
    app = create_app(test_settings)
    app.state.session_maker = session_maker
    app.state.automation = BankAutomationService(test_settings, session_maker)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": True}
        assert body["search_enabled"] is False
        assert body["llm_enabled"] is False
        assert response.headers["X-Request-ID"]

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
class TestTransactions:
    async def test_analyze(self, client, db, chart):
        transaction = await BankTransactionFactory.create_async(db)
        await db.commit()

        response = await client.post(f"/bank-automation/transactions/{transaction.id}/analyze")

        assert response.status_code == 200
        outcome = response.json()["outcome"]
        assert outcome["source"] == "vendor_default"
        assert outcome["score"] == 100
        assert outcome["suggestion"]["account_id"] == str(chart["4310"].id)
        await db.refresh(transaction)
        assert transaction.status == BankTransactionStatus.UNMATCHED

    async def test_analyze_unknown_transaction(self, client, chart):
        response = await client.post(f"/bank-automation/transactions/{uuid4()}/analyze")

        assert response.status_code == 404
        assert response.json()["detail"] == "Transaction not found"

    async def test_book(self, client, db, chart):
        transaction = await BankTransactionFactory.create_async(
            db, amount=Decimal("-12.50"), contra_name="Bakkerij de Vries"
        )
        await db.commit()

        response = await client.post(
            f"/bank-automation/transactions/{transaction.id}/book",
            json={"mode": "direct", "account_id": str(chart["4360"].id)},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "booked"
        rules = (await client.get("/bank-automation/rules")).json()
        assert [rule["keyword"] for rule in rules] == ["Bakkerij de Vries"]

    async def test_book_twice_is_rejected(self, client, db, chart):
        transaction = await BankTransactionFactory.create_async(db, status=BankTransactionStatus.BOOKED)
        await db.commit()

        response = await client.post(
            f"/bank-automation/transactions/{transaction.id}/book",
            json={"mode": "direct", "account_id": str(chart["4310"].id)},
        )

        assert response.status_code == 400
        assert "only unmatched transactions can be posted" in response.json()["detail"]

    async def test_batch(self, client, db, chart):
        transaction = await BankTransactionFactory.create_async(db)
        await db.commit()

        response = await client.post(
            "/bank-automation/batch",
            json={"transaction_ids": [str(transaction.id)], "concurrency_limit": 1},
        )

        assert response.status_code == 200
        report = response.json()
        assert report["total_processed"] == 1
        assert report["auto_booked_direct"] == 1

    @pytest.mark.parametrize(
        "payload",
        [
            {"transaction_ids": []},
            {"transaction_ids": [str(uuid4())], "concurrency_limit": 0},
            {"transaction_ids": [str(uuid4())], "concurrency_limit": 21},
        ],
    )
    async def test_batch_validation(self, client, payload):
        response = await client.post("/bank-automation/batch", json=payload)

        assert response.status_code == 422


@pytest.mark.asyncio
class TestInvoices:
    async def test_book_invoice(self, client, db, chart):
        contact = await ContactFactory.create_async(db, name="Kantoorhuis BV")
        invoice = await InvoiceFactory.create_async(db, contact_id=contact.id)
        await db.commit()

        response = await client.post(
            f"/bank-automation/invoices/{invoice.id}/book", json={"account_id": str(chart["4700"].id)}
        )

        assert response.status_code == 200
        assert response.json()["journal_entry_id"]

    async def test_book_invoice_on_revenue_account(self, client, db, chart):
        contact = await ContactFactory.create_async(db, name="Kantoorhuis BV")
        invoice = await InvoiceFactory.create_async(db, contact_id=contact.id)
        await db.commit()

        response = await client.post(
            f"/bank-automation/invoices/{invoice.id}/book", json={"account_id": str(chart["8000"].id)}
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestRules:
    async def test_list_rules(self, client, db, chart):
        await BankRuleFactory.create_async(db, keyword="albert heijn", target_account_id=chart["4360"].id)
        await BankRuleFactory.create_async(db, keyword="oud", is_active=False)
        await db.commit()

        active = (await client.get("/bank-automation/rules")).json()
        everything = (await client.get("/bank-automation/rules", params={"include_inactive": True})).json()

        assert [rule["keyword"] for rule in active] == ["albert heijn"]
        assert sorted(rule["keyword"] for rule in everything) == ["albert heijn", "oud"]

    async def test_system_rule_needs_force(self, client, db, chart):
        rule = await BankRuleFactory.create_async(db, keyword="belastingdienst", is_system=True)
        await db.commit()

        refused = await client.delete(f"/bank-automation/rules/{rule.id}")
        forced = await client.delete(f"/bank-automation/rules/{rule.id}", params={"force": True})

        assert refused.status_code == 400
        assert forced.status_code == 204
        assert (await client.get("/bank-automation/rules")).json() == []

    async def test_delete_unknown_rule(self, client, chart):
        response = await client.delete(f"/bank-automation/rules/{uuid4()}")

        assert response.status_code == 404
