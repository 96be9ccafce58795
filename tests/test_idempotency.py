import asyncio

from kungfu import Error, LazyCoroResult, Ok, Result

from lascentlo import idempotency as I


class Counter:
    def __init__(self, *, fail: bool = False, delay: float = 0.0) -> None:
        self.calls = 0
        self.fail = fail
        self.delay = delay

    def __call__(self, n: int) -> LazyCoroResult[int, str]:
        async def impl() -> Result[int, str]:
            self.calls += 1
            await asyncio.sleep(self.delay)
            if self.fail:
                return Error("boom")
            return Ok(n * 10)

        return LazyCoroResult(impl)


def executor(op: Counter, policy: I.Policy = I.Policy(), store: I.Store | None = None):
    return (
        I.idempotent(op)
        .key(lambda n: f"k:{n}")
        .store(store if store is not None else I.MemoryStore())
        .policy(policy)
        .build()
    )


async def test_second_call_is_served_from_cache():
    op = Counter()
    run = executor(op)

    match await run.run(4):
        case Ok(first):
            assert (first.value, first.from_cache) == (40, False)
        case Error(e):
            raise AssertionError(e)
    match await run.run(4):
        case Ok(second):
            assert (second.value, second.from_cache) == (40, True)
        case Error(e):
            raise AssertionError(e)
    assert op.calls == 1


async def test_errors_release_the_key():
    op = Counter(fail=True)
    store = I.MemoryStore()
    run = executor(op, store=store)

    match await run.run(1):
        case Error(e):
            assert e.kind == I.IdempotencyErrorKind.EXECUTION
            assert e.original_error == "boom"
        case Ok(_):
            raise AssertionError("expected failure")

    assert len(store) == 0
    await run.run(1)
    assert op.calls == 2


async def test_waiters_share_the_first_result():
    op = Counter(delay=0.1)
    run = executor(op, I.Policy().with_on_pending(I.WAIT).with_wait_timeout(seconds=2))

    results = await asyncio.gather(run.run(3), run.run(3), run.run(3))

    values = []
    for r in results:
        match r:
            case Ok(v):
                values.append(v.value)
            case Error(e):
                raise AssertionError(e)
    assert values == [30, 30, 30]
    assert op.calls == 1


async def test_fail_policy_rejects_duplicates_in_flight():
    op = Counter(delay=0.1)
    run = executor(op, I.Policy().with_on_pending(I.FAIL))

    first, second = await asyncio.gather(run.run(2), run.run(2))

    assert isinstance(first, Ok)
    match second:
        case Error(e):
            assert e.kind == I.IdempotencyErrorKind.CONFLICT
        case Ok(_):
            raise AssertionError("duplicate should be rejected")


async def test_waiter_gives_up_after_timeout():
    op = Counter(delay=0.5)
    run = executor(op, I.Policy().with_wait_timeout(seconds=0.1))

    first, second = await asyncio.gather(run.run(5), run.run(5))

    assert isinstance(first, Ok)
    match second:
        case Error(e):
            assert e.kind == I.IdempotencyErrorKind.TIMEOUT
        case Ok(_):
            raise AssertionError("waiter should time out")


async def test_expired_results_are_recomputed():
    op = Counter()
    run = executor(op, I.Policy().with_ttl(seconds=0.05))

    await run.run(7)
    await asyncio.sleep(0.1)
    await run.run(7)

    assert op.calls == 2
