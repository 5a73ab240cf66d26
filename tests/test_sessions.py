from duesbook.auth import authorize
from duesbook.sessions import SessionStore

EIGHT_HOURS = 8 * 60 * 60


class TestSessionStore:
    def test_create_and_lookup(self, store):
        token = store.create("9876543210", "admin", "Deepak")
        info = store.lookup(token)
        assert info.mobile == "9876543210"
        assert info.role == "admin"
        assert info.name == "Deepak"
        assert len(token) == 64

    def test_tokens_are_unique_per_call(self, store):
        tokens = {store.create("9876543210", "admin", "Deepak") for _ in range(50)}
        assert len(tokens) == 50

    def test_unknown_token(self, store):
        assert store.lookup("nope") is None
        assert store.lookup(None) is None

    def test_destroy_is_idempotent(self, store):
        token = store.create("9876543210", "admin", "Deepak")
        store.destroy(token)
        store.destroy(token)
        store.destroy("never-issued")
        store.destroy(None)
        assert store.lookup(token) is None

    def test_expires_after_ttl(self, store, clock):
        token = store.create("9876543210", "admin", "Deepak")
        clock.advance(EIGHT_HOURS - 1)
        assert store.lookup(token) is not None
        clock.advance(1)
        assert store.lookup(token) is None
        assert len(store) == 0

    def test_lookup_does_not_extend_ttl(self, store, clock):
        token = store.create("9876543210", "admin", "Deepak")
        for _ in range(7):
            clock.advance(60 * 60)
            assert store.lookup(token) is not None
        clock.advance(60 * 60)
        assert store.lookup(token) is None

    def test_sweep_removes_only_expired(self, store, clock):
        old = store.create("9876543210", "admin", "Deepak")
        clock.advance(EIGHT_HOURS - 10)
        fresh = store.create("9876543211", "viewer", "Lokesh")
        clock.advance(10)
        assert store.sweep() == 1
        assert store.lookup(old) is None
        assert store.lookup(fresh) is not None

    def test_custom_ttl(self, clock):
        short = SessionStore("s", ttl_seconds=5, clock=clock)
        token = short.create("9876543210", "viewer", "X")
        clock.advance(5)
        assert short.lookup(token) is None


class TestAuthorize:
    def test_admin_allowed(self, store):
        token = store.create("9876543210", "admin", "Deepak")
        assert authorize(store, "9876543210", token, "admin") is not None

    def test_identity_mismatch_denied(self, store):
        token = store.create("9876543210", "admin", "Deepak")
        assert authorize(store, "9876543211", token, "admin") is None
        assert authorize(store, None, token, "admin") is None

    def test_role_mismatch_denied(self, store):
        token = store.create("9876543211", "viewer", "Lokesh")
        assert authorize(store, "9876543211", token, "admin") is None
        assert authorize(store, "9876543211", token, None) is not None

    def test_destroyed_or_unknown_token_denied(self, store):
        token = store.create("9876543210", "admin", "Deepak")
        store.destroy(token)
        for role in ("admin", "viewer", None):
            assert authorize(store, "9876543210", token, role) is None
            assert authorize(store, "9876543210", "bogus", role) is None
            assert authorize(store, "9876543210", None, role) is None
