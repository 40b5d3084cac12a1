from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import pytest

from pynukibridge.client import NukiBridgeClient
from pynukibridge.config import BridgeConfig
from pynukibridge.exceptions import (
    BridgeConfigError,
    BridgeEmptyResponseError,
    BridgeParseError,
    BridgeTransportError,
    NukiBridgeError,
)
from pynukibridge.poller import LockPoller, PollerState
from pynukibridge.state.store import InMemoryStateStore
from tests._fakes import BACK_DOOR, FRONT_DOOR, FakeBridgeTransport


def _config(**overrides: object) -> BridgeConfig:
    values: dict[str, object] = {
        "bridge_ip": "192.168.1.10",
        "bridge_port": 8080,
        "token": "abc123",
        "poll_interval": 0.01,
    }
    values.update(overrides)
    return BridgeConfig(**values)  # type: ignore[arg-type]


def _poller(config: BridgeConfig, transport: FakeBridgeTransport) -> tuple[LockPoller, InMemoryStateStore]:
    store = InMemoryStateStore()
    client = NukiBridgeClient(config, transport=transport)
    return LockPoller(config, store, client=client), store


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_end_to_end_front_door_is_mirrored_acknowledged() -> None:
    config = _config()
    transport = FakeBridgeTransport(body=[FRONT_DOOR])
    poller, store = _poller(config, transport)

    result = await poller.poll_once()

    assert result.ok
    assert transport.calls == [("/list", {"token": "abc123"})]
    values = {path: (state.val, state.ack) for path, state in store.snapshot().items()}
    assert values == {
        "192_168_1_10.1.batteryCritical": (False, True),
        "192_168_1_10.1.state": (1, True),
        "192_168_1_10.1.stateName": ("locked", True),
        "192_168_1_10.1.timestamp": ("2024-01-01T00:00:00Z", True),
    }
    assert poller.state == PollerState.IDLE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "level"),
    [
        (BridgeTransportError("HTTP 503 from /list", status_code=503, endpoint="/list"), logging.ERROR),
        (BridgeParseError("Invalid JSON from /list", endpoint="/list"), logging.ERROR),
        (BridgeEmptyResponseError("Empty response from /list", endpoint="/list"), logging.WARNING),
    ],
)
async def test_failed_fetch_writes_nothing_and_logs(
    caplog: pytest.LogCaptureFixture,
    error: Exception,
    level: int,
) -> None:
    poller, store = _poller(_config(), FakeBridgeTransport(error=error))

    with caplog.at_level(logging.DEBUG, logger="pynukibridge"):
        result = await poller.poll_once()

    assert result.error is error
    assert result.locks == []
    assert store.snapshot() == {}
    assert any(rec.levelno == level and "/list" in rec.getMessage() for rec in caplog.records)


@pytest.mark.asyncio
async def test_invalid_record_aborts_whole_cycle() -> None:
    transport = FakeBridgeTransport(body=[FRONT_DOOR, {"id": "9", "name": "Broken"}])
    poller, store = _poller(_config(), transport)

    result = await poller.poll_once()

    assert isinstance(result.error, BridgeParseError)
    assert store.snapshot() == {}


@pytest.mark.asyncio
async def test_missing_address_skips_request_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    transport = FakeBridgeTransport()
    poller, store = _poller(_config(bridge_ip=""), transport)

    with caplog.at_level(logging.WARNING, logger="pynukibridge"):
        result = await poller.poll_once()

    assert isinstance(result.error, BridgeConfigError)
    assert transport.calls == []
    assert store.snapshot() == {}
    assert any("Skipping lock poll" in rec.getMessage() for rec in caplog.records)


@pytest.mark.asyncio
async def test_start_polls_repeatedly_until_stopped() -> None:
    transport = FakeBridgeTransport(body=[FRONT_DOOR, BACK_DOOR])
    poller, store = _poller(_config(poll_interval=0.01), transport)

    async with poller:
        await _wait_for(lambda: poller.cycle_count >= 3)

    assert poller.state == PollerState.STOPPED
    calls_at_stop = len(transport.calls)
    await asyncio.sleep(0.05)
    assert len(transport.calls) == calls_at_stop
    assert store.get_state("192_168_1_10.2.stateName").val == "unlocked"


@pytest.mark.asyncio
async def test_non_positive_interval_polls_once() -> None:
    transport = FakeBridgeTransport()
    poller, _store = _poller(_config(poll_interval=0), transport)

    await poller.start()
    await _wait_for(lambda: poller.cycle_count >= 1)
    await asyncio.sleep(0.05)
    await poller.stop()

    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_missing_address_is_retried_on_next_tick() -> None:
    transport = FakeBridgeTransport()
    poller, _store = _poller(_config(bridge_ip=""), transport)

    async with poller:
        await _wait_for(lambda: poller.cycle_count >= 2)

    assert transport.calls == []


@pytest.mark.asyncio
async def test_stop_during_in_flight_fetch_discards_result() -> None:
    transport = FakeBridgeTransport(block=asyncio.Event())
    poller, store = _poller(_config(), transport)

    await poller.start()
    await _wait_for(lambda: bool(transport.calls))
    assert poller.state == PollerState.FETCHING

    await poller.stop()
    transport.block.set()  # type: ignore[union-attr]
    await asyncio.sleep(0.01)

    assert poller.state == PollerState.STOPPED
    assert store.snapshot() == {}


@pytest.mark.asyncio
async def test_unexpected_error_does_not_kill_the_loop(caplog: pytest.LogCaptureFixture) -> None:
    transport = FakeBridgeTransport(error=RuntimeError("bug"))
    poller, _store = _poller(_config(), transport)

    with caplog.at_level(logging.ERROR, logger="pynukibridge"):
        async with poller:
            await _wait_for(lambda: poller.cycle_count >= 2)

    assert any("Unexpected error" in rec.getMessage() for rec in caplog.records)
    assert poller.last_result is not None
    assert isinstance(poller.last_result.error, RuntimeError)
    assert poller.last_result.ok is False


@pytest.mark.asyncio
async def test_unacknowledged_writes_are_logged_as_ignored_commands(caplog: pytest.LogCaptureFixture) -> None:
    transport = FakeBridgeTransport()
    poller, store = _poller(_config(poll_interval=60), transport)

    with caplog.at_level(logging.INFO, logger="pynukibridge"):
        async with poller:
            await _wait_for(lambda: poller.cycle_count >= 1)
            await store.write("192_168_1_10.1.state", 3, ack=False)

    assert any("Ignoring command on 192_168_1_10.1.state" in rec.getMessage() for rec in caplog.records)


@pytest.mark.asyncio
async def test_stopped_poller_cannot_restart_and_stop_is_idempotent() -> None:
    poller, _store = _poller(_config(), FakeBridgeTransport())

    await poller.stop()
    await poller.stop()

    assert poller.state == PollerState.STOPPED
    assert (await poller.poll_once()).cancelled is True
    with pytest.raises(NukiBridgeError):
        await poller.start()


@pytest.mark.asyncio
async def test_startup_log_never_contains_token(caplog: pytest.LogCaptureFixture) -> None:
    poller, _store = _poller(_config(poll_interval=60), FakeBridgeTransport())

    with caplog.at_level(logging.INFO, logger="pynukibridge"):
        async with poller:
            pass

    assert "abc123" not in caplog.text
    assert "192.168.1.10" in caplog.text


@pytest.mark.asyncio
async def test_poll_before_start_reports_uninitialized_client(caplog: pytest.LogCaptureFixture) -> None:
    poller = LockPoller(_config(), InMemoryStateStore())

    with caplog.at_level(logging.ERROR, logger="pynukibridge"):
        result = await poller.poll_once()

    assert isinstance(result.error, NukiBridgeError)
    assert result.ok is False
    assert poller.last_result is result
    assert poller.state == PollerState.IDLE
    assert any("not initialized" in rec.getMessage() for rec in caplog.records)


@pytest.mark.asyncio
async def test_concurrent_polls_keep_one_request_outstanding() -> None:
    transport = FakeBridgeTransport(block=asyncio.Event())
    poller, _store = _poller(_config(), transport)

    first = asyncio.create_task(poller.poll_once())
    second = asyncio.create_task(poller.poll_once())
    await _wait_for(lambda: bool(transport.calls))
    await asyncio.sleep(0.02)

    assert len(transport.calls) == 1

    transport.block.set()  # type: ignore[union-attr]
    results = await asyncio.gather(first, second)

    assert len(transport.calls) == 2
    assert all(result.ok for result in results)
    assert poller.cycle_count == 2
