"""
Unit tests for the decryption signature cache.
"""

import time

import pytest

from fhevm_client.decryption import DecryptionSignature, SignatureCache

USER = "0x" + "aa" * 20
OTHER = "0x" + "bb" * 20
TOKEN = "0x" + "cc" * 20
EWETH = "0x" + "ee" * 20


def signature(user=USER, chain_id=1, contracts=(TOKEN,), start=None, days=1):
    return DecryptionSignature(
        user_address=user,
        chain_id=chain_id,
        contract_addresses=tuple(contracts),
        public_key="0xpub",
        private_key="0xpriv",
        signature="0xsig",
        start_timestamp=int(time.time()) if start is None else start,
        duration_days=days,
    )


class TestDecryptionSignature:
    """Test signature validity and scope."""

    def test_validity_window(self):
        sig = signature(start=1000, days=1)
        assert sig.expires_at == 1000 + 86400
        assert sig.is_valid(now=1000)
        assert not sig.is_valid(now=999)
        assert not sig.is_valid(now=1000 + 86400)

    def test_covers_is_case_insensitive(self):
        sig = signature(contracts=(TOKEN.upper().replace("0X", "0x"),))
        assert sig.covers([TOKEN])
        assert sig.covers([])
        assert not sig.covers([TOKEN, EWETH])


class TestSignatureCache:
    """Test keyed storage and invalidation."""

    def test_put_and_get(self):
        cache = SignatureCache()
        cache.bind(USER, 1)
        sig = signature()
        cache.put(sig)

        assert cache.get(USER.upper().replace("0X", "0x"), 1, [TOKEN]) is sig
        assert cache.get(USER, 2, [TOKEN]) is None
        assert cache.get(USER, 1, [EWETH]) is None
        assert len(cache) == 1

    def test_expired_entry_ignored(self):
        cache = SignatureCache()
        cache.put(signature(start=0, days=1))
        assert cache.get(USER, 1, [TOKEN]) is None

    def test_bind_same_pair_keeps_entries(self):
        cache = SignatureCache()
        assert cache.bind(USER, 1) is False
        cache.put(signature())

        assert cache.bind(USER, 1) is False
        assert len(cache) == 1
        assert cache.binding == (USER, 1)

    @pytest.mark.parametrize("user, chain_id", [(OTHER, 1), (USER, 11155111)])
    def test_bind_change_drops_entries(self, user, chain_id):
        cache = SignatureCache()
        cache.bind(USER, 1)
        cache.put(signature())
        entries_before = cache._entries

        assert cache.bind(user, chain_id) is True
        assert len(cache) == 0
        # replaced, never mutated in place
        assert entries_before != cache._entries
        assert len(entries_before) == 1

    def test_invalidate(self):
        cache = SignatureCache()
        cache.bind(USER, 1)
        cache.put(signature())
        cache.invalidate()

        assert len(cache) == 0
        assert cache.binding is None
