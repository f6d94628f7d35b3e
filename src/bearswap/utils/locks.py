"""Per-account serialization of swap attempts.

Two overlapping swaps from the same account would race on sequence
numbers, so each account gets one lock in a process-wide registry.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from bearswap.errors import SwapInProgressError

logger = logging.getLogger(__name__)

# Global lock registry: account address -> asyncio.Lock
_account_locks: dict[str, asyncio.Lock] = {}
# Holders plus waiters per account; the lock is dropped when this reaches 0
_lock_users: dict[str, int] = {}


def get_account_lock(account: str) -> asyncio.Lock:
    """Get or create the lock for an account."""
    lock = _account_locks.get(account)
    if lock is None:
        lock = _account_locks[account] = asyncio.Lock()
    return lock


@asynccontextmanager
async def account_swap_lock(
    account: str,
    timeout: Optional[float] = 0,
    operation: str = "swap",
):
    """Hold the account's swap lock for the duration of the block.

    Args:
        account: Classic address of the swapping account
        timeout: 0 fails immediately if the lock is held, None waits
            forever, anything else waits up to that many seconds
        operation: Description for logging

    Raises:
        SwapInProgressError: the lock could not be acquired

    Example:
        async with account_swap_lock(account):
            # build, sign and submit
            pass
    """
    lock = get_account_lock(account)
    _lock_users[account] = _lock_users.get(account, 0) + 1
    try:
        if timeout == 0:
            if lock.locked():
                logger.warning(f"Rejected {operation} for {account}: already in progress")
                raise SwapInProgressError(account)
            await lock.acquire()
        elif timeout is None:
            await lock.acquire()
        else:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Lock timeout for {account} after {timeout}s: {operation}")
                raise SwapInProgressError(account)

        logger.debug(f"Lock acquired for {account}: {operation}")
        try:
            yield
        finally:
            lock.release()
            logger.debug(f"Lock released for {account}: {operation}")
    finally:
        _drop_user(account)


def _drop_user(account: str) -> None:
    """Forget an account's lock once nobody holds or waits for it."""
    remaining = _lock_users.get(account, 1) - 1
    if remaining > 0:
        _lock_users[account] = remaining
        return
    _lock_users.pop(account, None)
    _account_locks.pop(account, None)


def active_lock_count() -> int:
    """Number of accounts with a lock currently in the registry."""
    return len(_account_locks)


def clear_account_locks() -> None:
    """Clear all account locks (useful for testing)."""
    _account_locks.clear()
    _lock_users.clear()
