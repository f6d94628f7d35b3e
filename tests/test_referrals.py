"""Tests for referrer lookup and the local cache."""

import json

import httpx
import pytest

from bearswap.referrals import ReferralCache, ReferralLookup

from conftest import ACCOUNT, REFERRER


def api_response(referrer=None, success=True):
    return httpx.Response(
        200, json={"success": success, "data": {"referrerWallet": referrer} if referrer else None}
    )


class TestReferralCache:
    """Tests for ReferralCache."""

    def test_memory_cache(self):
        """Test set and get without a backing file."""
        cache = ReferralCache()
        cache.set(ACCOUNT, REFERRER)

        assert cache.get(ACCOUNT) == REFERRER
        assert cache.get("rUnknown") is None

    def test_persists_to_file(self, tmp_path):
        """Test entries survive a reload from disk."""
        path = tmp_path / "referrals.json"
        ReferralCache(str(path)).set(ACCOUNT, REFERRER)

        assert ReferralCache(str(path)).get(ACCOUNT) == REFERRER

    def test_referred_by_fallback(self, tmp_path):
        """Test older entries with only referredBy are used."""
        path = tmp_path / "referrals.json"
        path.write_text(json.dumps({ACCOUNT: {"referredBy": REFERRER}}))

        assert ReferralCache(str(path)).get(ACCOUNT) == REFERRER

    def test_corrupt_file_ignored(self, tmp_path):
        """Test an unreadable cache file starts empty."""
        path = tmp_path / "referrals.json"
        path.write_text("{not json")

        assert len(ReferralCache(str(path))) == 0


class TestReferralLookup:
    """Tests for ReferralLookup.get_referrer_for."""

    @pytest.mark.asyncio
    async def test_api_hit_writes_through(self):
        """Test an API answer is returned and cached."""
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return api_response(REFERRER)

        cache = ReferralCache()
        lookup = ReferralLookup("https://ref.test", cache=cache, transport=httpx.MockTransport(handler))

        assert await lookup.get_referrer_for(ACCOUNT) == REFERRER
        assert seen == [f"/api/referrals/{ACCOUNT}"]
        assert cache.get(ACCOUNT) == REFERRER

    @pytest.mark.asyncio
    async def test_api_without_referrer_uses_cache(self):
        """Test the local cache is checked when the API has no referrer."""
        cache = ReferralCache()
        cache.set(ACCOUNT, REFERRER)
        lookup = ReferralLookup(
            "https://ref.test",
            cache=cache,
            transport=httpx.MockTransport(lambda r: api_response(None)),
        )

        assert await lookup.get_referrer_for(ACCOUNT) == REFERRER

    @pytest.mark.asyncio
    async def test_api_down_uses_cache(self):
        """Test transport failures fall back to the cache."""

        def handler(request):
            raise httpx.ConnectError("connection refused")

        cache = ReferralCache()
        cache.set(ACCOUNT, REFERRER)
        lookup = ReferralLookup("https://ref.test", cache=cache, transport=httpx.MockTransport(handler))

        assert await lookup.get_referrer_for(ACCOUNT) == REFERRER

    @pytest.mark.asyncio
    async def test_server_error_without_cache(self):
        """Test no referrer anywhere is None, not an error."""
        lookup = ReferralLookup(
            "https://ref.test",
            cache=ReferralCache(),
            transport=httpx.MockTransport(lambda r: httpx.Response(500)),
        )

        assert await lookup.get_referrer_for(ACCOUNT) is None

    @pytest.mark.asyncio
    async def test_not_found(self):
        """Test 404 means no referrer."""
        lookup = ReferralLookup(
            "https://ref.test",
            cache=ReferralCache(),
            transport=httpx.MockTransport(lambda r: httpx.Response(404)),
        )

        assert await lookup.get_referrer_for(ACCOUNT) is None
