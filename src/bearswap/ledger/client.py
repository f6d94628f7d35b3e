"""rippled JSON-RPC client.

Speaks the plain JSON-RPC interface (POST {"method": ..., "params": [{...}]})
over httpx. Provides the three operations the swap engine needs:

- request(command, params): raw command access
- autofill(tx): Sequence, Fee and LastLedgerSequence
- submit_and_wait(blob): submit a signed blob and wait for validation
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx

from bearswap.config import get_settings
from bearswap.tokens import drops_to_xrp

logger = logging.getLogger(__name__)

SUCCESS_CODE = "tesSUCCESS"

# Engine result prefixes that mean the transaction can never be applied
_FINAL_FAILURE_PREFIXES = ("tem", "tef", "tel")

# Upper bound for autofilled fees (drops)
MAX_FEE_DROPS = 2_000_000


class LedgerRequestError(Exception):
    """Raised when rippled returns an error for a command."""

    def __init__(self, command: str, code: str, message: Optional[str] = None):
        self.command = command
        self.code = code
        super().__init__(f"{command} failed: {code}" + (f" ({message})" if message else ""))


@dataclass
class SubmitResult:
    """Outcome of a submitted transaction."""

    hash: Optional[str]
    result_code: str
    validated: bool = False
    ledger_index: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.result_code == SUCCESS_CODE


class LedgerClient:
    """Async JSON-RPC client for a rippled node."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        last_ledger_offset: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.rpc_url = rpc_url or settings.ledger_rpc_url
        self.timeout = timeout if timeout is not None else settings.ledger_request_timeout
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.ledger_poll_interval
        )
        self.last_ledger_offset = (
            last_ledger_offset
            if last_ledger_offset is not None
            else settings.ledger_last_ledger_offset
        )
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def request(self, command: str, params: Optional[dict] = None) -> dict:
        """Send a command and return its ``result`` object.

        Raises:
            LedgerRequestError: rippled reported an error
            httpx.HTTPError: transport failure
        """
        response = await self._client.post(
            self.rpc_url,
            json={"method": command, "params": [params or {}]},
        )
        response.raise_for_status()
        result = response.json().get("result", {})

        if result.get("status") == "error":
            raise LedgerRequestError(
                command, result.get("error", "unknown"), result.get("error_message")
            )
        return result

    # ======================
    # Account reads
    # ======================

    async def get_account_info(self, address: str) -> dict:
        result = await self.request(
            "account_info", {"account": address, "ledger_index": "validated"}
        )
        return result["account_data"]

    async def get_native_balance(self, address: str) -> Decimal:
        """Get an account's XRP balance."""
        account_data = await self.get_account_info(address)
        return drops_to_xrp(account_data["Balance"])

    async def get_account_lines(self, address: str, peer: Optional[str] = None) -> list[dict]:
        """Get all trust lines of an account, following pagination markers."""
        lines: list[dict] = []
        marker = None
        while True:
            params = {"account": address, "ledger_index": "validated", "limit": 400}
            if peer:
                params["peer"] = peer
            if marker:
                params["marker"] = marker
            result = await self.request("account_lines", params)
            lines.extend(result.get("lines", []))
            marker = result.get("marker")
            if not marker:
                return lines

    # ======================
    # Transactions
    # ======================

    async def autofill(self, tx: dict) -> dict:
        """Fill Sequence, Fee and LastLedgerSequence on a copy of ``tx``."""
        prepared = dict(tx)

        if "Sequence" not in prepared:
            info = await self.request(
                "account_info", {"account": prepared["Account"], "ledger_index": "current"}
            )
            prepared["Sequence"] = info["account_data"]["Sequence"]

        if "Fee" not in prepared:
            prepared["Fee"] = await self._get_fee_drops()

        if "LastLedgerSequence" not in prepared:
            current = await self.request("ledger_current")
            prepared["LastLedgerSequence"] = (
                current["ledger_current_index"] + self.last_ledger_offset
            )

        return prepared

    async def _get_fee_drops(self) -> str:
        result = await self.request("fee")
        drops = result.get("drops", {})
        fee = int(drops.get("open_ledger_fee") or drops.get("base_fee") or 12)
        return str(min(fee, MAX_FEE_DROPS))

    async def submit_and_wait(self, tx_blob: str) -> SubmitResult:
        """Submit a signed blob and wait until it is validated.

        Waits until the transaction shows up in a validated ledger, or the
        network passes its LastLedgerSequence.
        """
        submitted = await self.request("submit", {"tx_blob": tx_blob})
        engine_result = submitted.get("engine_result", "unknown")
        tx_json = submitted.get("tx_json", {})
        tx_hash = tx_json.get("hash")
        last_ledger = tx_json.get("LastLedgerSequence")

        logger.info(f"Submitted {tx_hash}: preliminary {engine_result}")

        if engine_result.startswith(_FINAL_FAILURE_PREFIXES):
            return SubmitResult(hash=tx_hash, result_code=engine_result)

        while True:
            await asyncio.sleep(self.poll_interval)

            try:
                tx = await self.request("tx", {"transaction": tx_hash})
            except LedgerRequestError as e:
                if e.code != "txnNotFound":
                    raise
                tx = {}

            if tx.get("validated"):
                meta = tx.get("meta", {})
                code = meta.get("TransactionResult", "unknown") if isinstance(meta, dict) else "unknown"
                logger.info(f"Validated {tx_hash}: {code}")
                return SubmitResult(
                    hash=tx_hash,
                    result_code=code,
                    validated=True,
                    ledger_index=tx.get("ledger_index"),
                )

            if last_ledger is not None:
                validated_index = await self._get_validated_index()
                if validated_index > last_ledger:
                    logger.warning(
                        f"{tx_hash} not validated by LastLedgerSequence {last_ledger}"
                    )
                    return SubmitResult(hash=tx_hash, result_code="tefMAX_LEDGER")

    async def _get_validated_index(self) -> int:
        result = await self.request("ledger", {"ledger_index": "validated"})
        return int(result.get("ledger_index") or result.get("ledger", {}).get("ledger_index", 0))
