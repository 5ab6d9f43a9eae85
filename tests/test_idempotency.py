import pytest

from loan_scoring.core import idempotency
from loan_scoring.core.idempotency import IdempotencyStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(idempotency.time, "monotonic", fake)
    return fake


@pytest.mark.asyncio
async def test_value_is_replayed_until_it_expires(clock):
    store = IdempotencyStore(ttl_seconds=60)
    key = IdempotencyStore.make_key("loan-create", "user-1", "abc")
    await store.set(key, {"id": "1"})

    clock.now += 30
    assert await store.get(key) == {"id": "1"}

    clock.now += 31
    assert await store.get(key) is None


@pytest.mark.asyncio
async def test_expired_keys_are_swept_on_write(clock):
    store = IdempotencyStore(ttl_seconds=60)
    for i in range(1000):
        await store.set(IdempotencyStore.make_key("loan-create", "user-1", str(i)), {"id": str(i)})

    clock.now += 61
    await store.set(IdempotencyStore.make_key("loan-create", "user-1", "fresh"), {"id": "fresh"})

    assert list(store._store) == ["idempotency:loan-create:user-1:fresh"]


def test_keys_are_scoped_per_owner():
    assert IdempotencyStore.make_key("loan-create", "a", "k") != IdempotencyStore.make_key("loan-create", "b", "k")
