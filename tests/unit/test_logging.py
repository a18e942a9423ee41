"""
Unit tests for logging helpers
"""

import asyncio

import pytest
from structlog.testing import capture_logs

from knnstore.core.config import settings
from knnstore.core.logging import add_app_context, measure_latency


@measure_latency("sample_operation")
async def sample_operation(value: int) -> int:
    await asyncio.sleep(0)
    return value * 2


@measure_latency("failing_operation")
async def failing_operation() -> None:
    raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_measure_latency_logs_and_returns_result() -> None:
    with capture_logs() as logs:
        result = await sample_operation(21)

    assert result == 42
    latency = [entry for entry in logs if entry["event"] == "latency"]
    assert len(latency) == 1
    assert latency[0]["operation"] == "sample_operation"
    assert latency[0]["latency_ms"] >= 0


@pytest.mark.asyncio
async def test_measure_latency_logs_even_when_operation_fails() -> None:
    with capture_logs() as logs:
        with pytest.raises(RuntimeError):
            await failing_operation()

    assert [entry["operation"] for entry in logs if entry["event"] == "latency"] == [
        "failing_operation"
    ]


def test_measure_latency_keeps_coroutine_signature() -> None:
    assert asyncio.iscoroutinefunction(sample_operation)
    assert sample_operation.__name__ == "sample_operation"


def test_add_app_context() -> None:
    event_dict = add_app_context(None, "info", {"event": "x"})

    assert event_dict["app"] == settings.app_name
    assert event_dict["version"] == settings.app_version
    assert event_dict["environment"] == settings.environment
