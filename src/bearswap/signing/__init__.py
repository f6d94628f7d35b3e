"""Wallet signing interfaces."""

from bearswap.signing.base import (
    SignedTransaction,
    SignerType,
    SigningError,
    SigningRejectedError,
    WalletSigner,
)
from bearswap.signing.callback import CallbackSigner

__all__ = [
    "CallbackSigner",
    "SignedTransaction",
    "SignerType",
    "SigningError",
    "SigningRejectedError",
    "WalletSigner",
]
