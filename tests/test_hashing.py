import hashlib

from duesbook.hashing import LEGACY_SALT, LegacyDigestHasher, PasslibHasher, get_hasher


class TestLegacyDigestHasher:
    """Fixed-salt sha256 digests, as stored by the old ledger."""

    def test_digest_matches_old_format(self, legacy_hasher):
        expected = hashlib.sha256(("secret1" + LEGACY_SALT).encode()).hexdigest()
        assert legacy_hasher.hash("secret1") == expected

    def test_deterministic(self, legacy_hasher):
        assert legacy_hasher.hash("abc123") == legacy_hasher.hash("abc123")
        assert legacy_hasher.hash("abc123") != legacy_hasher.hash("abc124")

    def test_verify(self, legacy_hasher):
        digest = legacy_hasher.hash("secret1")
        assert legacy_hasher.verify("secret1", digest)
        assert not legacy_hasher.verify("secret2", digest)
        assert not legacy_hasher.verify("secret1", "")

    def test_looks_hashed(self, legacy_hasher):
        assert legacy_hasher.looks_hashed(legacy_hasher.hash("x"))
        assert not legacy_hasher.looks_hashed("secret1")
        assert not legacy_hasher.looks_hashed("")


class TestPasslibHasher:
    def test_hash_is_salted(self, hasher):
        assert hasher.hash("secret1") != hasher.hash("secret1")

    def test_verify_own_hash(self, hasher):
        credential = hasher.hash("secret1")
        assert hasher.verify("secret1", credential)
        assert not hasher.verify("wrong", credential)
        assert not hasher.needs_update(credential)

    def test_accepts_legacy_digest_and_flags_upgrade(self, hasher, legacy_hasher):
        digest = legacy_hasher.hash("secret1")
        assert hasher.verify("secret1", digest)
        assert not hasher.verify("secret2", digest)
        assert hasher.needs_update(digest)

    def test_garbage_credential_does_not_verify(self, hasher):
        assert not hasher.verify("secret1", "not-a-hash")
        assert not hasher.verify("", hasher.hash("secret1"))

    def test_looks_hashed(self, hasher, legacy_hasher):
        assert hasher.looks_hashed(hasher.hash("secret1"))
        assert hasher.looks_hashed(legacy_hasher.hash("secret1"))
        assert not hasher.looks_hashed("secret1")


def test_get_hasher_by_scheme():
    assert isinstance(get_hasher("legacy_sha256"), LegacyDigestHasher)
    assert isinstance(get_hasher("pbkdf2_sha256"), PasslibHasher)
