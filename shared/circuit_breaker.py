"""
Circuit breaker for outbound calls to ledger full nodes.
"""

import time
from enum import Enum
from typing import Dict, Any, Callable, Awaitable

from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"          # calls fail fast
    HALF_OPEN = "half_open"  # one trial call allowed


class CircuitBreakerOpenException(Exception):
    """Raised instead of calling an endpoint whose breaker is open."""
    pass


class CircuitBreaker:
    """Opens after ``failure_threshold`` consecutive failures."""

    def __init__(self,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 60.0,
                 name: str = "default"):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self.logger = get_logger("verifier.circuit_breaker")

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    def is_open(self) -> bool:
        return self._state == CircuitBreakerState.OPEN

    def _allow_call(self) -> bool:
        if self._state != CircuitBreakerState.OPEN:
            return True
        if time.time() - self._opened_at >= self.recovery_timeout:
            self._state = CircuitBreakerState.HALF_OPEN
            self.logger.info("Circuit breaker half-open", breaker=self.name)
            return True
        return False

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Await ``func`` unless the breaker is open."""
        if not self._allow_call():
            raise CircuitBreakerOpenException(f"Circuit breaker '{self.name}' is open")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._record_failure()
            raise

        if self._state == CircuitBreakerState.HALF_OPEN:
            self.logger.info("Circuit breaker closed after successful call", breaker=self.name)
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        return result

    def _record_failure(self):
        self._failure_count += 1
        # A failed trial call reopens immediately
        if self._state == CircuitBreakerState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            if self._state != CircuitBreakerState.OPEN:
                self.logger.warning(
                    "Circuit breaker opened",
                    breaker=self.name,
                    failure_count=self._failure_count,
                    threshold=self.failure_threshold,
                )
            self._state = CircuitBreakerState.OPEN
            self._opened_at = time.time()


class CircuitBreakerManager:
    """One breaker per named endpoint."""

    def __init__(self):
        self.circuit_breakers: Dict[str, CircuitBreaker] = {}

    def get_circuit_breaker(self,
                            name: str,
                            failure_threshold: int = 5,
                            recovery_timeout: float = 60.0) -> CircuitBreaker:
        """Get or create a circuit breaker."""
        if name not in self.circuit_breakers:
            self.circuit_breakers[name] = CircuitBreaker(
                failure_threshold=failure_threshold,
                recovery_timeout=recovery_timeout,
                name=name
            )
        return self.circuit_breakers[name]

    def states(self) -> Dict[str, str]:
        """Map of breaker name to state value."""
        return {name: cb.state.value for name, cb in self.circuit_breakers.items()}
