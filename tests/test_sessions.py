import asyncio

from agents.reception.sessions import Flow, Session, SessionStore, Step


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


def test_get_set_delete():
    store = SessionStore()
    sess = Session(Flow.PRICE_LOOKUP, Step.QUERY)
    store.set("5511", sess)

    assert store.get("5511") is sess
    assert "5511" in store
    assert store.delete("5511") is True
    assert store.get("5511") is None
    assert store.delete("5511") is False


def test_idle_sessions_are_evicted():
    clock = FakeClock()
    store = SessionStore(idle_timeout=60, clock=clock)
    store.set("a", Session(Flow.SCHEDULE_APPOINTMENT, Step.NAME))

    clock.t += 59
    assert store.get("a") is not None

    clock.t += 2
    assert store.get("a") is None
    assert len(store) == 0


def test_set_refreshes_idle_timer():
    clock = FakeClock()
    store = SessionStore(idle_timeout=60, clock=clock)
    sess = Session(Flow.SCHEDULE_APPOINTMENT, Step.NAME)
    store.set("a", sess)
    clock.t += 50
    store.set("a", sess)
    clock.t += 50
    assert store.get("a") is sess


def test_zero_timeout_never_evicts():
    clock = FakeClock()
    store = SessionStore(idle_timeout=0, clock=clock)
    store.set("a", Session(Flow.PRICE_LOOKUP, Step.QUERY))
    clock.t += 10 ** 9
    assert store.get("a") is not None


def test_purge_expired():
    clock = FakeClock()
    store = SessionStore(idle_timeout=10, clock=clock)
    store.set("old", Session(Flow.PRICE_LOOKUP, Step.QUERY))
    clock.t += 20
    store.set("new", Session(Flow.PRICE_LOOKUP, Step.QUERY))

    assert store.purge_expired() == 1
    assert store.get("new") is not None


def test_copy_does_not_share_collected():
    sess = Session(Flow.SCHEDULE_APPOINTMENT, Step.DOCTOR, {"patient": "Ana"})
    dup = sess.copy()
    dup.collected["doctor"] = "Dr. X"
    assert "doctor" not in sess.collected


def test_lock_is_per_contact():
    store = SessionStore()
    assert store.lock("a") is store.lock("a")
    assert store.lock("a") is not store.lock("b")


def test_lock_serializes_turns_for_one_contact():
    store = SessionStore()
    order = []

    async def turn(tag):
        async with store.lock("a"):
            order.append(f"{tag}-start")
            await asyncio.sleep(0.01)
            order.append(f"{tag}-end")

    async def main():
        await asyncio.gather(turn("first"), turn("second"))

    asyncio.run(main())
    assert order == ["first-start", "first-end", "second-start", "second-end"]


def test_unused_locks_are_released():
    import gc

    store = SessionStore()

    async def main():
        for contact in ["a", "b", "c"]:
            async with store.lock(contact):
                await asyncio.sleep(0)

    asyncio.run(main())
    gc.collect()
    assert len(store._locks) == 0
