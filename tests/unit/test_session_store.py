import pytest

from retoucher.domain.errors import SessionNotFoundError
from retoucher.infrastructure.storage.session_store import SessionStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


def test_idle_session_expires_after_ttl(clock):
    store = SessionStore(ttl_seconds=60, clock=clock)
    session = store.create()

    clock.now = 59
    assert store.get(session.id) is session

    clock.now = 120
    with pytest.raises(SessionNotFoundError):
        store.get(session.id)
    assert len(store) == 0


def test_get_keeps_a_session_alive(clock):
    store = SessionStore(ttl_seconds=60, clock=clock)
    session = store.create()
    for now in (40, 80, 120):
        clock.now = now
        store.get(session.id)
    clock.now = 170
    assert store.prune() == 0
    assert store.get(session.id) is session


def test_limit_evicts_least_recently_used(clock):
    store = SessionStore(max_sessions=2, clock=clock)
    first = store.create()
    clock.now = 1
    second = store.create()
    clock.now = 2
    store.get(first.id)

    clock.now = 3
    third = store.create()

    assert len(store) == 2
    assert store.get(first.id) is first
    assert store.get(third.id) is third
    with pytest.raises(SessionNotFoundError):
        store.get(second.id)


def test_busy_session_is_never_dropped(clock):
    store = SessionStore(ttl_seconds=60, max_sessions=1, clock=clock)
    busy = store.create()
    busy.begin_request()

    clock.now = 500
    assert store.prune() == 0
    other = store.create()

    assert len(store) == 2
    assert store.get(busy.id) is busy
    assert store.get(other.id) is other
    busy.end_request()


def test_delete(clock):
    store = SessionStore(clock=clock)
    session = store.create()
    assert store.delete(session.id)
    assert not store.delete(session.id)
    with pytest.raises(SessionNotFoundError):
        store.get(session.id)
