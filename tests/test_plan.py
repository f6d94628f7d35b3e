"""Tests for swap plans and fee splitting."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from bearswap.fees import FeeTier
from bearswap.pricing.base import PriceOracle
from bearswap.quote import QuoteBuilder
from bearswap.swap.plan import (
    REFERRAL_MEMO,
    SWAP_FEE_MEMO,
    TF_PARTIAL_PAYMENT,
    SingleRecipient,
    SplitRecipient,
    build_swap_plan,
    decode_memo,
    encode_memo,
    plan_fees,
)
from bearswap.tokens import NATIVE, drops_to_xrp

from conftest import ACCOUNT, BEAR, ISSUER, REFERRER, TREASURY, make_quote


class TestFeePlan:
    """Tests for plan_fees."""

    def test_no_referrer(self):
        """Test the whole fee goes to the treasury."""
        plan = plan_fees(Decimal("1.0"), TREASURY)

        assert plan == SingleRecipient(treasury=TREASURY, amount=Decimal("1.0"))

    def test_referrer_splits_in_half(self):
        """Test a referrer gets half the fee."""
        plan = plan_fees(Decimal("1.0"), TREASURY, REFERRER)

        assert isinstance(plan, SplitRecipient)
        assert plan.amount_each == Decimal("0.5")


class TestMemos:
    """Tests for memo encoding."""

    def test_hex_upper_case(self):
        """Test memo fields are upper-case hex of the UTF-8 text."""
        memo = encode_memo(SWAP_FEE_MEMO, "x")

        assert memo["Memo"]["MemoType"] == "BEAR_SWAP_FEE".encode().hex().upper()
        assert memo["Memo"]["MemoData"] == "78"
        assert decode_memo(memo) == ("BEAR_SWAP_FEE", "x")


class TestSwapPlan:
    """Tests for build_swap_plan."""

    def test_swap_transaction_xrp_input(self):
        """Test SendMax excludes the fee and DeliverMin is scaled to it."""
        quote = make_quote(input_amount="100", output_amount="50000", fee_amount="0.589", slippage_bps=100)

        plan = build_swap_plan(quote, ACCOUNT, plan_fees(quote.fee_amount, TREASURY))
        tx = plan.swap_transaction

        assert tx["TransactionType"] == "Payment"
        assert tx["Account"] == tx["Destination"] == ACCOUNT
        assert tx["Flags"] == TF_PARTIAL_PAYMENT
        assert tx["SendMax"] == "99411000"
        assert tx["Amount"]["value"] == "50000"
        # 49500 * 99.411 / 100
        assert tx["DeliverMin"]["value"] == "49208.445"
        assert tx["DeliverMin"]["issuer"] == ISSUER

    def test_swap_transaction_token_input(self):
        """Test token input sends the full token amount."""
        quote = make_quote(
            input_token=BEAR,
            output_token=NATIVE,
            input_amount="50000",
            output_amount="99.411",
            fee_amount="0.589",
        )

        tx = build_swap_plan(quote, ACCOUNT, plan_fees(quote.fee_amount, TREASURY)).swap_transaction

        assert tx["SendMax"]["value"] == "50000"
        assert tx["Amount"] == "99411000"
        assert tx["DeliverMin"] == "99411000"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["100", "123.456789", "7.5"])
    @pytest.mark.parametrize("slippage_bps", [0, 50])
    async def test_deliver_min_reachable_at_quoted_price(self, amount, slippage_bps):
        """Test SendMax at the quoted price buys at least DeliverMin."""
        price = Decimal("0.002")
        oracle = MagicMock(spec=PriceOracle)
        oracle.price_of = AsyncMock(return_value=price)
        quote = await QuoteBuilder(oracle, quote_ttl_seconds=30).build_quote(
            NATIVE, BEAR, Decimal(amount), slippage_bps, FeeTier.STANDARD
        )

        tx = build_swap_plan(quote, ACCOUNT, plan_fees(quote.fee_amount, TREASURY)).swap_transaction

        assert drops_to_xrp(tx["SendMax"]) / price >= Decimal(tx["DeliverMin"]["value"])
        assert Decimal(tx["DeliverMin"]["value"]) <= quote.minimum_received

    def test_single_fee(self):
        """Test one treasury payment with the swap description."""
        quote = make_quote(fee_amount="0.589")

        plan = build_swap_plan(quote, ACCOUNT, plan_fees(quote.fee_amount, TREASURY))

        assert plan.fee_count == 1
        fee = plan.fee_transactions[0]
        assert fee["Destination"] == TREASURY
        assert fee["Amount"] == "589000"
        assert decode_memo(fee["Memos"][0]) == (SWAP_FEE_MEMO, "Fee for swap: XRP → BEAR")

    def test_split_fee_order(self):
        """Test referrer payment first, treasury second."""
        quote = make_quote(fee_amount="1.0")

        plan = build_swap_plan(quote, ACCOUNT, plan_fees(quote.fee_amount, TREASURY, REFERRER))

        assert plan.fee_count == 2
        referral, treasury = plan.fee_transactions
        assert referral["Destination"] == REFERRER
        assert treasury["Destination"] == TREASURY
        assert referral["Amount"] == treasury["Amount"] == "500000"
        assert decode_memo(referral["Memos"][0])[0] == REFERRAL_MEMO
        assert decode_memo(treasury["Memos"][0])[0] == SWAP_FEE_MEMO
        assert plan.fee_labels == ["referral commission", "treasury fee"]

    def test_assign_sequences(self):
        """Test fee Sequences follow the swap's."""
        quote = make_quote(fee_amount="1.0")
        plan = build_swap_plan(quote, ACCOUNT, plan_fees(quote.fee_amount, TREASURY, REFERRER))
        plan.swap_transaction["Sequence"] = 41

        plan.assign_sequences()

        assert [tx["Sequence"] for tx in plan.transactions] == [41, 42, 43]
