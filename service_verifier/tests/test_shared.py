"""
Tests for the shared logging, tracing, error and circuit breaker helpers.
"""

import pytest
from unittest.mock import AsyncMock

from shared.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerManager,
    CircuitBreakerOpenException,
    CircuitBreakerState,
)
from shared.errors import ExternalServiceError
from shared.logging import add_correlation_context, add_service_context, clear_context, set_request_id
from shared.tracing import _build_otlp_exporter_kwargs, trace_operation
from service_verifier.app.errors import GenericError, ParsingError


class TestCircuitBreaker:
    """Test cases for CircuitBreaker."""

    @pytest.mark.asyncio
    async def test_success_keeps_closed(self):
        breaker = CircuitBreaker(failure_threshold=2, name="ok")
        func = AsyncMock(return_value=42)

        assert await breaker.call(func, "arg") == 42
        func.assert_awaited_once_with("arg")
        assert breaker.state == CircuitBreakerState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_after_recovery(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=0, name="recovering")

        with pytest.raises(RuntimeError):
            await breaker.call(AsyncMock(side_effect=RuntimeError("down")))
        assert breaker.is_open()

        # Recovery timeout of zero lets the next call through
        assert await breaker.call(AsyncMock(return_value="up")) == "up"
        assert breaker.state == CircuitBreakerState.CLOSED

    @pytest.mark.asyncio
    async def test_open_blocks_calls(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, name="blocked")
        with pytest.raises(RuntimeError):
            await breaker.call(AsyncMock(side_effect=RuntimeError("down")))

        func = AsyncMock()
        with pytest.raises(CircuitBreakerOpenException):
            await breaker.call(func)
        func.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_trial_call_reopens(self):
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=0, name="flaky")
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await breaker.call(AsyncMock(side_effect=RuntimeError("down")))

        with pytest.raises(RuntimeError):
            await breaker.call(AsyncMock(side_effect=RuntimeError("still down")))

        assert breaker.is_open()

    def test_manager_reuses_breakers(self):
        manager = CircuitBreakerManager()

        first = manager.get_circuit_breaker("ledger:a")
        assert manager.get_circuit_breaker("ledger:a") is first
        assert manager.states() == {"ledger:a": "closed"}


class TestErrors:
    """Test cases for error responses."""

    def test_parsing_error_body(self):
        body = ParsingError().to_response().model_dump(exclude_none=True)
        assert body == {"error": "Parsing error", "code": "PARSING_ERROR"}

    def test_generic_error_carries_detail(self):
        error = GenericError("ZKLogin expired at epoch 3")
        assert error.status_code == 400
        assert error.to_response().error == "ZKLogin expired at epoch 3"

    def test_external_service_error(self):
        error = ExternalServiceError("Google", "JWKS request failed")
        assert error.status_code == 502
        assert error.message == "Google: JWKS request failed"


class TestLoggingProcessors:
    """Test cases for log processors."""

    def test_request_id_added(self):
        request_id = set_request_id("req-1")
        try:
            event = add_correlation_context(None, "info", {"event": "x"})
        finally:
            clear_context()

        assert request_id == "req-1"
        assert event["request_id"] == "req-1"

    def test_generated_request_id(self):
        request_id = set_request_id()
        clear_context()
        assert len(request_id) == 36

    def test_service_from_logger_name(self):
        event = add_service_context(None, "info", {"logger": "verifier.pipeline"})
        assert event["service"] == "verifier"


class TestTracing:
    """Test cases for tracing helpers."""

    def test_exporter_kwargs(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_HEADERS", "api-key=abc, tenant = t1,,bad")

        kwargs = _build_otlp_exporter_kwargs("http://collector:4317")

        # Assertions
        assert kwargs["endpoint"] == "http://collector:4317"
        assert kwargs["insecure"] is True
        assert kwargs["headers"] == {"api-key": "abc", "tenant": "t1"}

    def test_trace_operation_reraises(self):
        with pytest.raises(ValueError):
            with trace_operation("failing", attribute="x", skipped=None):
                raise ValueError("boom")
