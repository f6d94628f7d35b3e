"""Pytest configuration and fixtures."""

import os
import time
from decimal import Decimal
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["FEE_NFT_ISSUER"] = ""

from bearswap.fees import FeeTier
from bearswap.ledger.client import SubmitResult
from bearswap.quote import SwapQuote
from bearswap.signing.base import SignedTransaction, SignerType, WalletSigner
from bearswap.tokens import NATIVE, Token, xrp_to_drops
from bearswap.utils.locks import clear_account_locks

ACCOUNT = "rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe"
REFERRER = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
TREASURY = "rBEARKfWJS1LYdg2g6t99BgbvpWY5pgMB9"
ISSUER = "rsoLo2S1kiGeCcn6hCUXVrCpGMWLrRrLZz"

BEAR = Token("BEAR", ISSUER)


class FakeLedger:
    """In-memory stand-in for LedgerClient that records every call."""

    def __init__(
        self,
        balance: Decimal = Decimal("1000"),
        sequence: int = 100,
        lines: Optional[list[dict]] = None,
    ):
        self.balance = balance
        self.sequence = sequence
        self.lines = lines or []
        self.responses: dict[str, dict] = {}
        self.requests: list[tuple[str, dict]] = []
        self.autofilled: list[dict] = []
        self.submitted: list[str] = []
        self.submit_results: list[SubmitResult] = []
        self.calls = 0

    async def request(self, command: str, params: Optional[dict] = None) -> dict:
        self.calls += 1
        self.requests.append((command, params or {}))
        response = self.responses.get(command, {})
        if isinstance(response, Exception):
            raise response
        return response

    async def get_native_balance(self, address: str) -> Decimal:
        self.calls += 1
        return self.balance

    async def get_account_lines(self, address: str, peer: Optional[str] = None) -> list[dict]:
        self.calls += 1
        return list(self.lines)

    async def autofill(self, tx: dict) -> dict:
        self.calls += 1
        prepared = dict(tx)
        if "Sequence" not in prepared:
            prepared["Sequence"] = self.sequence
            self.sequence += 1
        prepared.setdefault("Fee", "12")
        prepared.setdefault("LastLedgerSequence", 5000)
        self.autofilled.append(prepared)
        return prepared

    async def submit_and_wait(self, tx_blob: str) -> SubmitResult:
        self.calls += 1
        self.submitted.append(tx_blob)
        if self.submit_results:
            return self.submit_results.pop(0)
        return SubmitResult(hash=f"HASH-{tx_blob}", result_code="tesSUCCESS", validated=True)


class FakeSigner(WalletSigner):
    """Signs by returning a blob named after the transaction's Sequence."""

    def __init__(self):
        super().__init__(SignerType.CALLBACK)
        self.signed: list[dict] = []

    async def sign(self, transaction: dict) -> SignedTransaction:
        self.signed.append(transaction)
        return SignedTransaction(
            tx_blob=f"{transaction['TransactionType']}-{transaction['Sequence']}"
        )


def make_quote(
    input_token: Token = NATIVE,
    output_token: Token = BEAR,
    input_amount: str = "100",
    output_amount: str = "50000",
    fee_amount: str = "0.589",
    slippage_bps: int = 0,
    ttl: float = 30.0,
    created_at: Optional[float] = None,
) -> SwapQuote:
    """Build a quote directly, bypassing the price oracle."""
    created = time.time() if created_at is None else created_at
    output = Decimal(output_amount)
    minimum = output * (Decimal("1") - Decimal(slippage_bps) / Decimal("10000"))
    return SwapQuote(
        input_token=input_token,
        output_token=output_token,
        input_amount=Decimal(input_amount),
        output_amount=output,
        exchange_rate=output / Decimal(input_amount),
        fee_amount=Decimal(fee_amount),
        fee_tier=FeeTier.STANDARD,
        slippage_bps=slippage_bps,
        minimum_received=minimum,
        price_impact_pct=Decimal("0.3"),
        price_in_xrp=Decimal("0.002"),
        created_at=created,
        expires_at=created + ttl,
    )


def drops(amount: str) -> str:
    return xrp_to_drops(Decimal(amount))


@pytest.fixture(autouse=True)
def reset_locks():
    """Start every test with an empty account lock registry."""
    clear_account_locks()
    yield
    clear_account_locks()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()
