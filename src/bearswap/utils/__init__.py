"""Utility modules for BearSwap."""

from bearswap.utils.locks import (
    account_swap_lock,
    active_lock_count,
    clear_account_locks,
    get_account_lock,
)

__all__ = ["account_swap_lock", "active_lock_count", "clear_account_locks", "get_account_lock"]
