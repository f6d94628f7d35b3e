"""Swap execution: trust lines, fee plans and the executor."""

from bearswap.swap.executor import StatusUpdate, SwapExecutor, SwapResult, SwapState
from bearswap.swap.factory import create_quote_builder, create_swap_executor
from bearswap.swap.plan import (
    REFERRAL_MEMO,
    SWAP_FEE_MEMO,
    FeePayment,
    FeePlan,
    SingleRecipient,
    SplitRecipient,
    SwapPlan,
    build_swap_plan,
    plan_fees,
)
from bearswap.swap.trustline import TrustlineCheck, TrustlineProvisioner

__all__ = [
    "REFERRAL_MEMO",
    "SWAP_FEE_MEMO",
    "FeePayment",
    "FeePlan",
    "SingleRecipient",
    "SplitRecipient",
    "StatusUpdate",
    "SwapExecutor",
    "SwapPlan",
    "SwapResult",
    "SwapState",
    "TrustlineCheck",
    "TrustlineProvisioner",
    "build_swap_plan",
    "create_quote_builder",
    "create_swap_executor",
    "plan_fees",
]
