"""Swap plans: the unsigned transactions behind one swap attempt.

A plan holds one self-directed partial payment (the swap) and one or two
XRP fee payments. Fee payments carry a memo that off-chain accounting
scans ledger history for, so the tag strings must not change.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Union

from bearswap.quote import SwapQuote
from bearswap.tokens import xrp_to_drops

logger = logging.getLogger(__name__)

SWAP_FEE_MEMO = "BEAR_SWAP_FEE"
REFERRAL_MEMO = "REFERRAL_COMMISSION"

# Payment flag: deliver at least DeliverMin, up to Amount
TF_PARTIAL_PAYMENT = 131072


def encode_memo(memo_type: str, memo_data: str) -> dict:
    """Build a Memos entry with upper-case hex MemoType/MemoData."""
    return {
        "Memo": {
            "MemoType": memo_type.encode("utf-8").hex().upper(),
            "MemoData": memo_data.encode("utf-8").hex().upper(),
        }
    }


def decode_memo(memo: dict) -> tuple[str, str]:
    """Inverse of encode_memo."""
    inner = memo.get("Memo", memo)
    return (
        bytes.fromhex(inner.get("MemoType", "")).decode("utf-8"),
        bytes.fromhex(inner.get("MemoData", "")).decode("utf-8"),
    )


@dataclass(frozen=True)
class FeePayment:
    """One XRP fee payment."""

    destination: str
    amount: Decimal
    memo_type: str
    memo_data: str
    label: str

    def to_transaction(self, account: str) -> dict:
        return {
            "TransactionType": "Payment",
            "Account": account,
            "Destination": self.destination,
            "Amount": xrp_to_drops(self.amount),
            "Memos": [encode_memo(self.memo_type, self.memo_data)],
        }


@dataclass(frozen=True)
class SingleRecipient:
    """Whole fee goes to the treasury."""

    treasury: str
    amount: Decimal

    def payments(self, description: str = "") -> list[FeePayment]:
        return [
            FeePayment(
                destination=self.treasury,
                amount=self.amount,
                memo_type=SWAP_FEE_MEMO,
                memo_data=description or "Fee for swap",
                label="fee",
            )
        ]


@dataclass(frozen=True)
class SplitRecipient:
    """Fee split in half between the referrer and the treasury."""

    referrer: str
    treasury: str
    amount_each: Decimal

    def payments(self, description: str = "") -> list[FeePayment]:
        # Referrer first, treasury second
        return [
            FeePayment(
                destination=self.referrer,
                amount=self.amount_each,
                memo_type=REFERRAL_MEMO,
                memo_data="50% commission for referral",
                label="referral commission",
            ),
            FeePayment(
                destination=self.treasury,
                amount=self.amount_each,
                memo_type=SWAP_FEE_MEMO,
                memo_data="50% treasury fee (referred user)",
                label="treasury fee",
            ),
        ]


FeePlan = Union[SingleRecipient, SplitRecipient]


def plan_fees(fee: Decimal, treasury: str, referrer: Optional[str] = None) -> FeePlan:
    """Choose how a fee is paid out."""
    if referrer:
        return SplitRecipient(referrer=referrer, treasury=treasury, amount_each=fee / 2)
    return SingleRecipient(treasury=treasury, amount=fee)


@dataclass
class SwapPlan:
    """Unsigned swap transaction plus its fee transactions, in submit order."""

    swap_transaction: dict
    fee_transactions: list[dict]
    fee_plan: FeePlan
    fee_labels: list[str] = field(default_factory=list)

    @property
    def fee_count(self) -> int:
        return len(self.fee_transactions)

    @property
    def transactions(self) -> list[dict]:
        return [self.swap_transaction, *self.fee_transactions]

    def assign_sequences(self) -> None:
        """Number fee transactions right after the swap's Sequence."""
        base = self.swap_transaction["Sequence"]
        for index, tx in enumerate(self.fee_transactions):
            tx["Sequence"] = base + 1 + index


def build_swap_transaction(quote: SwapQuote, account: str) -> dict:
    """Self-directed partial payment through the DEX.

    SendMax caps the outlay at the fee-adjusted input. DeliverMin is the
    quoted minimum scaled to what SendMax can buy.
    """
    return {
        "TransactionType": "Payment",
        "Account": account,
        "Destination": account,
        "Amount": quote.output_token.to_ledger_amount(quote.output_amount),
        "DeliverMin": quote.output_token.to_ledger_amount(quote.swap_minimum_received),
        "SendMax": quote.input_token.to_ledger_amount(quote.swap_input_amount),
        "Flags": TF_PARTIAL_PAYMENT,
    }


def build_swap_plan(quote: SwapQuote, account: str, fee_plan: FeePlan) -> SwapPlan:
    """Build the unsigned transactions for a quote."""
    description = f"Fee for swap: {quote.input_token.symbol} → {quote.output_token.symbol}"
    payments = fee_plan.payments(description)

    plan = SwapPlan(
        swap_transaction=build_swap_transaction(quote, account),
        fee_transactions=[p.to_transaction(account) for p in payments],
        fee_plan=fee_plan,
        fee_labels=[p.label for p in payments],
    )
    logger.debug(
        f"Plan for {account}: swap + {plan.fee_count} fee tx "
        f"({', '.join(f'{p.amount} XRP -> {p.destination}' for p in payments)})"
    )
    return plan
