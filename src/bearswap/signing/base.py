"""Base interfaces for transaction signing.

Signing flow:
1. Build and autofill the unsigned transaction
2. Hand it to the wallet signer (may prompt the user and wait indefinitely)
3. Signer returns the signed blob, never the private key
4. Submit the blob to the ledger
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class SignerType(str, Enum):
    """Type of signing backend."""
    CALLBACK = "callback"     # Wallet integration supplied by the host app
    HARDWARE = "hardware"     # Hardware wallet
    REMOTE = "remote"         # Remote wallet (e.g. QR / push sign request)


@dataclass
class SignedTransaction:
    """Result of signing a transaction.

    Attributes:
        tx_blob: Signed transaction as hex blob, ready to submit
        hash: Transaction hash, if the wallet reports it
    """
    tx_blob: str
    hash: Optional[str] = None


class WalletSigner(ABC):
    """Abstract base class for wallet signers.

    Implementations should NEVER expose raw private keys.
    ``sign`` may suspend for as long as the user takes to confirm.
    """

    def __init__(self, signer_type: SignerType):
        self.signer_type = signer_type

    @abstractmethod
    async def sign(self, transaction: dict) -> SignedTransaction:
        """Sign an autofilled transaction.

        Args:
            transaction: Transaction JSON including Sequence, Fee and
                LastLedgerSequence

        Returns:
            SignedTransaction with the blob to submit

        Raises:
            SigningRejectedError: the user declined
            SigningError: the wallet failed to sign
        """
        pass

    async def health_check(self) -> bool:
        """Check if the signer is available."""
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.signer_type.value})"


class SigningError(Exception):
    """Exception raised when signing fails."""
    pass


class SigningRejectedError(SigningError):
    """Exception raised when the user declines to sign."""
    pass
