"""
Async Utilities for Resilient Upstream Calls.

Python 3.12+ features used:
- asyncio.TaskGroup for structured concurrency (3.11+)
- Type parameter syntax for generic functions

Provides:
- Parallel execution with TaskGroup, preserving input order
- Circuit breaker with a rolling failure-rate window
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import CircuitOpenError, ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Parallel Execution with TaskGroup (Python 3.11+)
# =============================================================================


async def gather_with_errors(
    *coros: Awaitable[T],
    return_exceptions: bool = False,
) -> list[T | Exception]:
    """
    Execute coroutines in parallel using TaskGroup.

    Results are returned in the order the coroutines were passed, whatever
    order they complete in.

    Args:
        *coros: Coroutines to execute
        return_exceptions: If True, an exception from one coroutine is placed
            in its result slot and its siblings keep running

    Returns:
        List of results (or exceptions if return_exceptions=True)

    Example:
        results = await gather_with_errors(
            fetch_page(2),
            fetch_page(3),
            return_exceptions=True
        )
    """
    if return_exceptions:
        results: list[T | Exception] = [None] * len(coros)  # type: ignore[list-item]

        async def safe_run(coro: Awaitable[T], index: int) -> None:
            try:
                results[index] = await coro
            except Exception as e:
                results[index] = e

        async with asyncio.TaskGroup() as tg:
            for i, coro in enumerate(coros):
                tg.create_task(safe_run(coro, i))
        return results

    # Fail fast on any exception
    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(coro) for coro in coros]  # type: ignore[arg-type]
    return [task.result() for task in tasks]


# =============================================================================
# Circuit Breaker Pattern
# =============================================================================


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass
class CircuitBreaker:
    """
    Circuit breaker for fault tolerance.

    Outcomes of the last ``sliding_window_size`` calls are kept in a rolling
    window. Once at least ``minimum_number_of_calls`` outcomes are recorded and
    the failure rate reaches ``failure_rate_threshold`` percent, the circuit
    opens and rejects calls with CircuitOpenError. After
    ``wait_duration_in_open_state`` seconds the next calls are admitted as
    trials (HALF_OPEN): a successful trial closes the circuit, a failed one
    re-opens it.

    One instance is shared by every caller of a given upstream endpoint.

    Example:
        breaker = CircuitBreaker(name="github-search", minimum_number_of_calls=5)

        async with breaker:
            result = await risky_api_call()
    """

    name: str = "default"
    failure_rate_threshold: float = 50.0  # percent
    minimum_number_of_calls: int = 5
    sliding_window_size: int = 10
    wait_duration_in_open_state: float = 30.0  # seconds
    permitted_calls_in_half_open_state: int = 3
    clock: Callable[[], float] = time.monotonic

    _state: CircuitState = field(init=False, default=CircuitState.CLOSED)
    _outcomes: deque[bool] = field(init=False)
    _opened_at: float | None = field(init=False, default=None)
    # tasks admitted as trial calls in the current HALF_OPEN period
    _trial_calls: set[asyncio.Task[Any]] = field(init=False, default_factory=set)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    def __post_init__(self) -> None:
        if not 0 < self.failure_rate_threshold <= 100:
            raise ConfigurationError(
                f"failure_rate_threshold must be in (0, 100], got {self.failure_rate_threshold}"
            )
        if self.minimum_number_of_calls < 1:
            raise ConfigurationError("minimum_number_of_calls must be >= 1")
        if self.sliding_window_size < self.minimum_number_of_calls:
            raise ConfigurationError("sliding_window_size must be >= minimum_number_of_calls")
        if self.wait_duration_in_open_state < 0:
            raise ConfigurationError("wait_duration_in_open_state must be >= 0")
        if self.permitted_calls_in_half_open_state < 1:
            raise ConfigurationError("permitted_calls_in_half_open_state must be >= 1")
        self._outcomes = deque(maxlen=self.sliding_window_size)

    @property
    def state(self) -> CircuitState:
        """Current state. OPEN stays OPEN until a call arrives after the cool-down."""
        return self._state

    @property
    def failure_rate(self) -> float:
        """Failure rate (percent) over the rolling window, 0 when empty."""
        if not self._outcomes:
            return 0.0
        failures = sum(1 for ok in self._outcomes if not ok)
        return failures * 100.0 / len(self._outcomes)

    def _remaining_open_time(self) -> float:
        if self._opened_at is None:
            return 0.0
        return max(0.0, self.wait_duration_in_open_state - (self.clock() - self._opened_at))

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._trial_calls.clear()
        if new_state is CircuitState.OPEN:
            self._opened_at = self.clock()
            logger.warning(
                f"Circuit breaker '{self.name}' opened ({old_state.value} -> open, "
                f"failure rate {self.failure_rate:.0f}%)"
            )
        elif new_state is CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker '{self.name}' half-open, admitting trial calls")
        else:
            self._opened_at = None
            self._outcomes.clear()
            logger.info(f"Circuit breaker '{self.name}' closed (recovered)")

    async def __aenter__(self) -> CircuitBreaker:
        async with self._lock:
            if self._state is CircuitState.OPEN:
                remaining = self._remaining_open_time()
                if remaining > 0:
                    raise CircuitOpenError(self.name, retry_after=remaining)
                self._transition(CircuitState.HALF_OPEN)

            if self._state is CircuitState.HALF_OPEN:
                if len(self._trial_calls) >= self.permitted_calls_in_half_open_state:
                    raise CircuitOpenError(self.name, retry_after=self.wait_duration_in_open_state / 2)
                self._trial_calls.add(asyncio.current_task())

        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        succeeded = exc_val is None
        async with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                if asyncio.current_task() not in self._trial_calls:
                    # Admitted while CLOSED; only trial calls decide recovery
                    return
                self._transition(CircuitState.CLOSED if succeeded else CircuitState.OPEN)
                return

            if self._state is CircuitState.OPEN:
                # A call admitted before the circuit opened finished late
                return

            self._outcomes.append(succeeded)
            if (
                len(self._outcomes) >= self.minimum_number_of_calls
                and self.failure_rate >= self.failure_rate_threshold
            ):
                self._transition(CircuitState.OPEN)

    def reset(self) -> None:
        """Force the circuit back to CLOSED with an empty window."""
        self._transition(CircuitState.CLOSED)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot for health reporting."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_rate": round(self.failure_rate, 2),
            "buffered_calls": len(self._outcomes),
            "retry_after_seconds": round(self._remaining_open_time(), 2)
            if self._state is CircuitState.OPEN
            else 0.0,
        }
