"""Tests for the rippled JSON-RPC client."""

import json
from decimal import Decimal

import httpx
import pytest

from bearswap.ledger.client import MAX_FEE_DROPS, LedgerClient, LedgerRequestError

from conftest import ACCOUNT


class FakeRippled:
    """MockTransport handler answering JSON-RPC commands from a table."""

    def __init__(self, results: dict):
        self.results = results
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        params = body["params"][0]
        self.calls.append((method, params))
        result = self.results[method]
        if callable(result):
            result = result(params)
        return httpx.Response(200, json={"result": result})

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)


def make_client(rippled: FakeRippled) -> LedgerClient:
    return LedgerClient(
        rpc_url="https://rippled.test",
        timeout=5,
        poll_interval=0,
        last_ledger_offset=20,
        transport=httpx.MockTransport(rippled),
    )


class TestRequests:
    """Tests for plain command access."""

    @pytest.mark.asyncio
    async def test_request_envelope(self):
        """Test commands are posted as method + single params object."""
        rippled = FakeRippled({"server_info": {"status": "success", "info": {}}})

        async with make_client(rippled) as client:
            result = await client.request("server_info")

        assert result["status"] == "success"
        assert rippled.calls == [("server_info", {})]

    @pytest.mark.asyncio
    async def test_error_result_raises(self):
        """Test status=error becomes LedgerRequestError with the code."""
        rippled = FakeRippled({
            "account_info": {"status": "error", "error": "actNotFound", "error_message": "Account not found."}
        })

        async with make_client(rippled) as client:
            with pytest.raises(LedgerRequestError) as exc_info:
                await client.get_account_info(ACCOUNT)

        assert exc_info.value.code == "actNotFound"

    @pytest.mark.asyncio
    async def test_native_balance(self):
        """Test Balance drops are converted to XRP."""
        rippled = FakeRippled({"account_info": {"account_data": {"Balance": "25500000"}}})

        async with make_client(rippled) as client:
            assert await client.get_native_balance(ACCOUNT) == Decimal("25.5")

    @pytest.mark.asyncio
    async def test_account_lines_pagination(self):
        """Test markers are followed until exhausted."""

        def lines(params):
            if params.get("marker") == "page2":
                return {"lines": [{"currency": "USD"}]}
            return {"lines": [{"currency": "BEAR"}], "marker": "page2"}

        rippled = FakeRippled({"account_lines": lines})

        async with make_client(rippled) as client:
            result = await client.get_account_lines(ACCOUNT)

        assert [line["currency"] for line in result] == ["BEAR", "USD"]
        assert rippled.count("account_lines") == 2


class TestAutofill:
    """Tests for autofill."""

    @pytest.mark.asyncio
    async def test_fills_missing_fields(self):
        """Test Sequence, Fee and LastLedgerSequence are filled."""
        rippled = FakeRippled({
            "account_info": {"account_data": {"Sequence": 42}},
            "fee": {"drops": {"base_fee": "10", "open_ledger_fee": "15"}},
            "ledger_current": {"ledger_current_index": 1000},
        })
        tx = {"TransactionType": "Payment", "Account": ACCOUNT}

        async with make_client(rippled) as client:
            prepared = await client.autofill(tx)

        assert prepared["Sequence"] == 42
        assert prepared["Fee"] == "15"
        assert prepared["LastLedgerSequence"] == 1020
        assert "Sequence" not in tx

    @pytest.mark.asyncio
    async def test_keeps_given_sequence(self):
        """Test a preassigned Sequence is not overwritten."""
        rippled = FakeRippled({
            "fee": {"drops": {"base_fee": "10"}},
            "ledger_current": {"ledger_current_index": 1000},
        })

        async with make_client(rippled) as client:
            prepared = await client.autofill({"Account": ACCOUNT, "Sequence": 7})

        assert prepared["Sequence"] == 7
        assert rippled.count("account_info") == 0

    @pytest.mark.asyncio
    async def test_fee_is_capped(self):
        """Test runaway open ledger fees are capped."""
        rippled = FakeRippled({
            "fee": {"drops": {"open_ledger_fee": str(MAX_FEE_DROPS * 10)}},
            "ledger_current": {"ledger_current_index": 1},
        })

        async with make_client(rippled) as client:
            prepared = await client.autofill({"Account": ACCOUNT, "Sequence": 1})

        assert prepared["Fee"] == str(MAX_FEE_DROPS)


class TestSubmitAndWait:
    """Tests for submit_and_wait."""

    @pytest.mark.asyncio
    async def test_waits_for_validation(self):
        """Test polling continues until the transaction is validated."""
        polls = iter([
            {"status": "error", "error": "txnNotFound"},
            {"validated": False},
            {"validated": True, "ledger_index": 1005, "meta": {"TransactionResult": "tesSUCCESS"}},
        ])
        rippled = FakeRippled({
            "submit": {
                "engine_result": "tesSUCCESS",
                "tx_json": {"hash": "ABC", "LastLedgerSequence": 1020},
            },
            "tx": lambda params: next(polls),
            "ledger": {"ledger_index": 1004},
        })

        async with make_client(rippled) as client:
            result = await client.submit_and_wait("BLOB")

        assert result.success
        assert result.hash == "ABC"
        assert result.ledger_index == 1005
        assert rippled.count("tx") == 3

    @pytest.mark.asyncio
    async def test_validated_failure_code(self):
        """Test a validated tec result is reported, not raised."""
        rippled = FakeRippled({
            "submit": {"engine_result": "tesSUCCESS", "tx_json": {"hash": "ABC"}},
            "tx": {"validated": True, "meta": {"TransactionResult": "tecPATH_PARTIAL"}},
        })

        async with make_client(rippled) as client:
            result = await client.submit_and_wait("BLOB")

        assert not result.success
        assert result.result_code == "tecPATH_PARTIAL"

    @pytest.mark.asyncio
    async def test_malformed_returns_immediately(self):
        """Test tem results are final without polling."""
        rippled = FakeRippled({
            "submit": {"engine_result": "temBAD_AMOUNT", "tx_json": {"hash": "ABC"}},
        })

        async with make_client(rippled) as client:
            result = await client.submit_and_wait("BLOB")

        assert result.result_code == "temBAD_AMOUNT"
        assert rippled.count("tx") == 0

    @pytest.mark.asyncio
    async def test_expires_past_last_ledger(self):
        """Test giving up once the validated ledger passes LastLedgerSequence."""
        rippled = FakeRippled({
            "submit": {
                "engine_result": "terQUEUED",
                "tx_json": {"hash": "ABC", "LastLedgerSequence": 1020},
            },
            "tx": {"status": "error", "error": "txnNotFound"},
            "ledger": {"ledger_index": 1021},
        })

        async with make_client(rippled) as client:
            result = await client.submit_and_wait("BLOB")

        assert result.result_code == "tefMAX_LEDGER"
        assert not result.validated
