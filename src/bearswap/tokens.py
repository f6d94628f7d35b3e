"""Token identity and XRP Ledger amount helpers.

Currency codes on the ledger come in three shapes:
- "XRP" (native, no issuer)
- 3-character ISO-style codes ("USD")
- 40-character hex codes for anything longer ("BEAR" -> "4245415200...")

Two tokens are the same asset when their decoded, upper-cased codes and
issuers match.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_DOWN, Context, Decimal
from typing import Optional, Union

NATIVE_CURRENCY = "XRP"
DROPS_PER_XRP = Decimal("1000000")

# Classic address alphabet (base58, ripple dictionary)
_ADDRESS_RE = re.compile(r"^r[1-9A-HJ-NP-Za-km-z]{24,34}$")
_HEX_CURRENCY_RE = re.compile(r"^[0-9A-Fa-f]{40}$")

# Issued currency amounts carry at most 15 significant digits
_ISSUED_CONTEXT = Context(prec=15)


def is_hex_currency(code: str) -> bool:
    """Check if a currency code is in 40-character hex form."""
    return bool(code) and bool(_HEX_CURRENCY_RE.match(code))


def decode_currency(code: str) -> str:
    """Convert a hex currency code to its human-readable form."""
    if not is_hex_currency(code):
        return code
    raw = bytes.fromhex(code).rstrip(b"\x00")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return code.upper()


def to_ledger_currency(code: str) -> str:
    """Convert a currency code to the form the ledger expects.

    3-character codes and hex codes are upper-cased; longer codes are
    hex-encoded and padded to 20 bytes.
    """
    if code.upper() == NATIVE_CURRENCY:
        return NATIVE_CURRENCY
    if is_hex_currency(code):
        return code.upper()
    if len(code) == 3:
        return code.upper()
    raw = code.encode("utf-8")[:20]
    return raw.hex().upper().ljust(40, "0")


def normalize_currency(code: str) -> str:
    """Return the canonical comparison key for a currency code."""
    return decode_currency(code).strip().upper()


def currency_equals(a: str, b: str) -> bool:
    """Compare two currency codes across hex and readable forms."""
    if a == b:
        return True
    return normalize_currency(a) == normalize_currency(b)


def is_valid_address(address: Optional[str]) -> bool:
    """Check that a string looks like a classic XRPL account address."""
    if not address or not isinstance(address, str):
        return False
    return bool(_ADDRESS_RE.match(address.strip()))


@dataclass(frozen=True)
class Token:
    """A ledger asset. ``issuer=None`` is XRP."""

    currency: str
    issuer: Optional[str] = None

    def __post_init__(self):
        if not self.currency:
            raise ValueError("Token currency is required")
        if self.issuer is None and normalize_currency(self.currency) != NATIVE_CURRENCY:
            raise ValueError(f"Issued currency {self.currency} requires an issuer")

    @classmethod
    def native(cls) -> "Token":
        return cls(NATIVE_CURRENCY)

    @property
    def is_native(self) -> bool:
        return self.issuer is None

    @property
    def symbol(self) -> str:
        """Human-readable currency code."""
        if self.is_native:
            return NATIVE_CURRENCY
        return decode_currency(self.currency)

    @property
    def ledger_currency(self) -> str:
        return to_ledger_currency(self.currency)

    @property
    def key(self) -> str:
        """Normalized identity used for cache keys and comparisons."""
        if self.is_native:
            return NATIVE_CURRENCY
        return f"{normalize_currency(self.currency)}:{self.issuer}"

    def same_asset(self, other: "Token") -> bool:
        return self.key == other.key

    def to_ledger_asset(self) -> dict:
        """Asset object for book_offers / amm_info requests."""
        if self.is_native:
            return {"currency": NATIVE_CURRENCY}
        return {"currency": self.ledger_currency, "issuer": self.issuer}

    def to_ledger_amount(self, value: Decimal) -> Union[str, dict]:
        """Transaction amount: drops string for XRP, object otherwise."""
        if self.is_native:
            return xrp_to_drops(value)
        return {
            "currency": self.ledger_currency,
            "issuer": self.issuer,
            "value": format_issued_value(value),
        }

    def matches_ledger_amount(self, amount: Union[str, dict]) -> bool:
        """Check whether a ledger amount object is denominated in this token."""
        if self.is_native:
            return isinstance(amount, str)
        return (
            isinstance(amount, dict)
            and currency_equals(amount.get("currency", ""), self.currency)
            and amount.get("issuer") == self.issuer
        )

    def __str__(self) -> str:
        if self.is_native:
            return NATIVE_CURRENCY
        return f"{self.symbol}.{self.issuer}"


NATIVE = Token.native()


def xrp_to_drops(amount: Decimal) -> str:
    """Convert XRP to an integer drops string, rounding down."""
    drops = (Decimal(amount) * DROPS_PER_XRP).to_integral_value(rounding=ROUND_DOWN)
    return str(int(drops))


def drops_to_xrp(drops: Union[str, int]) -> Decimal:
    """Convert a drops value to XRP."""
    return Decimal(int(drops)) / DROPS_PER_XRP


def format_issued_value(value: Decimal) -> str:
    """Format an issued-currency value with at most 15 significant digits."""
    rounded = _ISSUED_CONTEXT.create_decimal(value)
    text = format(rounded, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def parse_ledger_amount(amount: Union[str, dict]) -> Decimal:
    """Parse an amount from a ledger response (drops string or value object)."""
    if isinstance(amount, str):
        return drops_to_xrp(amount)
    return Decimal(str(amount.get("value", "0")))
