"""Signer backed by a host-supplied callable.

Wallet integrations usually expose something like
``async sign(tx) -> {"tx_blob": ..., "hash": ...}``; this adapts that
shape (or a bare blob string) to WalletSigner.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from bearswap.signing.base import SignedTransaction, SignerType, SigningError, WalletSigner

logger = logging.getLogger(__name__)

SignCallback = Callable[[dict], Union[Awaitable[Any], Any]]


class CallbackSigner(WalletSigner):
    """Wraps a sign callback from the wallet layer."""

    def __init__(self, callback: SignCallback, signer_type: SignerType = SignerType.CALLBACK):
        super().__init__(signer_type)
        self._callback = callback

    async def sign(self, transaction: dict) -> SignedTransaction:
        result = self._callback(transaction)
        if inspect.isawaitable(result):
            result = await result
        return self._to_signed(result)

    @staticmethod
    def _to_signed(result: Any) -> SignedTransaction:
        if isinstance(result, SignedTransaction):
            return result
        if isinstance(result, str) and result:
            return SignedTransaction(tx_blob=result)
        if isinstance(result, dict) and result.get("tx_blob"):
            return SignedTransaction(tx_blob=result["tx_blob"], hash=result.get("hash"))
        raise SigningError(f"Wallet returned no signed blob ({type(result).__name__})")
