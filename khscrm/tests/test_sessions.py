from khscrm.sessions import InMemorySessionStore, UserContext

USER = UserContext(id="user-1", email="w@example.com", name="Worker", role="WORKER")


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_create_get_destroy():
    store = InMemorySessionStore(ttl_seconds=60)
    sid = store.create(USER)
    assert store.get(sid) == USER
    store.destroy(sid)
    assert store.get(sid) is None
    # Destroying twice is harmless
    store.destroy(sid)


def test_sessions_expire_after_fixed_ttl():
    clock = FakeClock()
    store = InMemorySessionStore(ttl_seconds=60, clock=clock)
    sid = store.create(USER)
    clock.now += 59
    assert store.get(sid) == USER
    clock.now += 1
    assert store.get(sid) is None
    assert len(store) == 0


def test_expired_sessions_are_purged_on_create():
    clock = FakeClock()
    store = InMemorySessionStore(ttl_seconds=10, clock=clock)
    store.create(USER)
    clock.now += 11
    store.create(USER)
    assert len(store) == 1


def test_unknown_session():
    assert InMemorySessionStore(ttl_seconds=60).get("nope") is None
