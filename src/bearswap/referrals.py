"""Referrer lookup.

The referral backend resolves a wallet's referral code to the referrer's
wallet address. When the backend is down or has no record, the local
cache (written on earlier successful lookups or at registration time)
is consulted instead.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import httpx

from bearswap.config import get_settings

logger = logging.getLogger(__name__)


class ReferralCache:
    """Local referrer cache keyed by the referred wallet address.

    Entries look like ``{"referrerWallet": "r...", "referredBy": "..."}``.
    With ``path`` set, entries persist to a JSON file; otherwise they
    live in memory only.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._entries: dict[str, dict] = {}
        if self.path and self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read referral cache {self.path}: {e}")
            return
        if isinstance(data, dict):
            self._entries = {k: v for k, v in data.items() if isinstance(v, dict)}

    def _save(self) -> None:
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._entries, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write referral cache {self.path}: {e}")

    def get(self, address: str) -> Optional[str]:
        """Get the cached referrer wallet for an address.

        Prefers the resolved ``referrerWallet`` over ``referredBy``.
        """
        entry = self._entries.get(address)
        if not entry:
            return None
        return entry.get("referrerWallet") or entry.get("referredBy") or None

    def set(self, address: str, referrer_wallet: str) -> None:
        entry = self._entries.setdefault(address, {})
        entry["referrerWallet"] = referrer_wallet
        self._save()

    def clear(self) -> None:
        self._entries.clear()
        self._save()

    def __len__(self) -> int:
        return len(self._entries)


class ReferralLookup:
    """Resolves the referrer of a wallet via the referral API."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        cache: Optional[ReferralCache] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_url = (api_url or settings.referral_api_url).rstrip("/")
        self.cache = cache if cache is not None else ReferralCache(settings.referral_cache_path)
        self.timeout = timeout if timeout is not None else settings.referral_timeout
        self._transport = transport

    async def get_referrer_for(self, address: str) -> Optional[str]:
        """Get the referrer wallet for ``address``, or None.

        Never raises: API failures fall back to the local cache.
        """
        try:
            referrer = await self._fetch(address)
        except Exception as e:
            logger.warning(f"Referral lookup failed for {address}, using local cache: {e}")
            return self.cache.get(address)

        if referrer:
            self.cache.set(address, referrer)
            return referrer

        cached = self.cache.get(address)
        if cached:
            logger.info(f"No referrer from API for {address}, found {cached} in local cache")
        return cached

    async def _fetch(self, address: str) -> Optional[str]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(f"{self.api_url}/api/referrals/{address}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()

        if data.get("success") and isinstance(data.get("data"), dict):
            return data["data"].get("referrerWallet") or None
        return None
