"""BearSwap: XRP Ledger swap quotes and execution with XRP fee collection."""

__version__ = "0.1.0"
