"""Trust line provisioning for the output token."""

import logging
from dataclasses import dataclass
from typing import Optional

from bearswap.config import get_settings
from bearswap.tokens import Token, currency_equals

logger = logging.getLogger(__name__)

# TrustSet flag: do not allow rippling through the new line
TF_SET_NO_RIPPLE = 131072


@dataclass
class TrustlineCheck:
    """Result of ensure_trustline.

    ``transaction`` is an unsigned TrustSet when the line is missing,
    and None when it already exists (or the token is XRP).
    """

    present: bool
    transaction: Optional[dict] = None

    @property
    def needs_provisioning(self) -> bool:
        return self.transaction is not None


class TrustlineProvisioner:
    """Makes sure an account can hold a token before a swap delivers it."""

    def __init__(self, ledger, limit: Optional[str] = None):
        self.ledger = ledger
        self.limit = limit or get_settings().trust_line_limit

    async def has_trustline(self, account: str, token: Token) -> bool:
        """Check whether ``account`` already trusts ``token``.

        A failed account_lines lookup counts as "no line"; the TrustSet
        that follows is harmless if the line existed after all.
        """
        if token.is_native:
            return True
        try:
            lines = await self.ledger.get_account_lines(account, peer=token.issuer)
        except Exception as e:
            logger.warning(f"Failed to check trustlines for {account}: {e}")
            return False

        return any(
            line.get("account") == token.issuer
            and currency_equals(line.get("currency", ""), token.currency)
            for line in lines
        )

    def build_trust_set(self, account: str, token: Token) -> dict:
        """Build the unsigned TrustSet for ``token``."""
        return {
            "TransactionType": "TrustSet",
            "Account": account,
            "LimitAmount": {
                "currency": token.ledger_currency,
                "issuer": token.issuer,
                "value": self.limit,
            },
            "Flags": TF_SET_NO_RIPPLE,
        }

    async def ensure_trustline(self, account: str, token: Token) -> TrustlineCheck:
        """Return whether the line exists, plus a TrustSet to submit if not."""
        if await self.has_trustline(account, token):
            return TrustlineCheck(present=True)

        logger.info(f"{account} has no trustline for {token}, building TrustSet")
        return TrustlineCheck(present=False, transaction=self.build_trust_set(account, token))
