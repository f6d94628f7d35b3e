"""Tests for wallet signer adapters."""

import pytest

from bearswap.signing import CallbackSigner, SignedTransaction, SigningError


class TestCallbackSigner:
    """Tests for CallbackSigner."""

    @pytest.mark.asyncio
    async def test_async_callback_dict(self):
        """Test wallet dict results are unpacked."""

        async def wallet_sign(tx):
            return {"tx_blob": "DEADBEEF", "hash": "H1"}

        signed = await CallbackSigner(wallet_sign).sign({"TransactionType": "Payment"})

        assert signed == SignedTransaction(tx_blob="DEADBEEF", hash="H1")

    @pytest.mark.asyncio
    async def test_sync_callback_blob(self):
        """Test a plain blob string is accepted."""
        signed = await CallbackSigner(lambda tx: "CAFE").sign({})

        assert signed.tx_blob == "CAFE"
        assert signed.hash is None

    @pytest.mark.asyncio
    async def test_passes_transaction(self):
        """Test the callback receives the transaction to sign."""
        received = []

        def wallet_sign(tx):
            received.append(tx)
            return "CAFE"

        await CallbackSigner(wallet_sign).sign({"Sequence": 5})

        assert received == [{"Sequence": 5}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [None, "", {"hash": "H1"}, 42])
    async def test_no_blob(self, result):
        """Test results without a blob raise SigningError."""
        with pytest.raises(SigningError):
            await CallbackSigner(lambda tx: result).sign({})
