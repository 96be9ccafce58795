"""
Saga — multi-step workflows with compensation.

    from lascentlo import saga as S

    placed = S.from_async(
        lambda: processor.create_intent(request),
        on_error=as_shop_error,
        compensate=lambda intent: processor.cancel_intent(intent.id),
    ).then(lambda intent: S.step(persist(intent)))

    result = await S.run_chain(placed)

When a later step fails, compensators of the steps that already succeeded
run in reverse order. A failing compensator is logged and counted; the
original error is what the caller sees.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog
from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

log = structlog.get_logger(__name__)

type Compensator[T] = Callable[[T], Awaitable[None]]
type Recorded = list[tuple[object, Compensator[object]]]


# ═══════════════════════════════════════════════════════════════════════════════
# Steps
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    action: LazyCoroResult[T, E]
    compensate: Compensator[T] | None = None
    name: str = "step"

    def then[U, E2](self, f: Callable[[T], SagaStep[U, E2]]) -> Then[T, U, E, E2]:
        return Then(self, f)


@dataclass(frozen=True, slots=True)
class Then[T, U, E, E2]:
    inner: SagaStep[T, E]
    f: Callable[[T], SagaStep[U, E2]]


def step[T, E](
    action: LazyCoroResult[T, E],
    compensate: Compensator[T] | None = None,
    *,
    name: str = "step",
) -> SagaStep[T, E]:
    return SagaStep(action=action, compensate=compensate, name=name)


def from_async[T, E](
    action: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
    compensate: Compensator[T] | None = None,
    *,
    name: str = "step",
) -> SagaStep[T, E]:
    """Step from a plain coroutine function; exceptions become Error(on_error(e))."""
    return SagaStep(
        action=L.catching_async(action, on_error=on_error),
        compensate=compensate,
        name=name,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    value: T
    steps_executed: int


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    error: E
    step_failed: int
    compensators_run: int
    compensators_failed: int

    @property
    def rollback_complete(self) -> bool:
        return self.compensators_failed == 0


# ═══════════════════════════════════════════════════════════════════════════════
# Execution
# ═══════════════════════════════════════════════════════════════════════════════

async def _run_step[T, E](saga_step: SagaStep[T, E], recorded: Recorded) -> Result[T, E]:
    result = await saga_step.action
    match result:
        case Ok(value):
            if saga_step.compensate is not None:
                recorded.append((value, saga_step.compensate))
            return Ok(value)
        case Error(e):
            log.info("saga_step_failed", step=saga_step.name, error=repr(e))
            return Error(e)


async def _compensate(recorded: Recorded) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    run = failed = 0
    for value, comp in reversed(recorded):
        try:
            await comp(value)
            run += 1
        except Exception:
            failed += 1
            log.exception("saga_compensation_failed")
    return run, failed


async def run[T, E](saga_step: SagaStep[T, E]) -> Result[SagaResult[T], SagaError[E]]:
    recorded: Recorded = []
    match await _run_step(saga_step, recorded):
        case Ok(value):
            return Ok(SagaResult(value=value, steps_executed=1))
        case Error(e):
            return Error(SagaError(error=e, step_failed=1, compensators_run=0, compensators_failed=0))


async def run_chain[T, U, E, E2](
    chain: Then[T, U, E, E2],
) -> Result[SagaResult[U], SagaError[E | E2]]:
    recorded: Recorded = []

    match await _run_step(chain.inner, recorded):
        case Error(e):
            comp_run, comp_failed = await _compensate(recorded)
            return Error(SagaError(e, 1, comp_run, comp_failed))
        case Ok(value):
            pass

    match await _run_step(chain.f(value), recorded):
        case Ok(final):
            return Ok(SagaResult(value=final, steps_executed=2))
        case Error(e):
            comp_run, comp_failed = await _compensate(recorded)
            return Error(SagaError(e, 2, comp_run, comp_failed))


__all__ = (
    "Compensator",
    "SagaStep",
    "Then",
    "step",
    "from_async",
    "SagaResult",
    "SagaError",
    "run",
    "run_chain",
)
