# tests/tracker/test_controller.py
"""
Тесты контроллера сессии трекинга.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.shared.models.enums import TrackingState
from src.shared.models.location_dto import LocationSample
from src.tracker.controller import TrackingController
from src.tracker.permissions import StaticPermissionChecker
from src.tracker.sender import RetrySender, SendResult
from src.tracker.source import ManualLocationSource


def make_controller(
    source: ManualLocationSource | None = None,
    sender: MagicMock | RetrySender | None = None,
    granted: bool = True,
    **kwargs,
) -> TrackingController:
    if sender is None:
        sender = MagicMock()
        sender.deliver = AsyncMock(return_value=SendResult.success("ok", 1))
    return TrackingController(
        source or ManualLocationSource(),
        sender,
        StaticPermissionChecker(granted),
        lambda: "tok",
        interval_seconds=60,
        min_displacement_meters=0,
        max_accuracy_meters=100,
        max_sample_age_seconds=300,
        **kwargs,
    )


async def drain() -> None:
    for _ in range(3):
        await asyncio.sleep(0)


class TestStartStop:

    @pytest.mark.asyncio
    async def test_start_subscribes(self) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)

        state = await controller.start()

        assert state == TrackingState.ACTIVE
        assert controller.is_tracking
        assert source.subscriber_count == 1
        assert source.intervals == [60]

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_subscription(self) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)

        await controller.start()
        await controller.start(interval_seconds=5)

        assert source.subscriber_count == 1
        assert source.intervals == [60]

    @pytest.mark.asyncio
    async def test_start_without_permission(self) -> None:
        source = ManualLocationSource()
        controller = make_controller(source, granted=False)

        state = await controller.start()

        assert state == TrackingState.PERMISSION_DENIED
        assert not controller.is_tracking
        assert source.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_source_refuses_subscription(self) -> None:
        controller = make_controller(ManualLocationSource(permission_granted=False))

        assert await controller.start() == TrackingState.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_invalid_interval(self) -> None:
        controller = make_controller()

        with pytest.raises(ValueError):
            await controller.start(interval_seconds=0)
        assert controller.state == TrackingState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_sends(self, make_sample) -> None:
        blocker = asyncio.Event()

        async def slow_deliver(sample, token):
            await blocker.wait()

        sender = MagicMock()
        sender.deliver = AsyncMock(side_effect=slow_deliver)
        source = ManualLocationSource()
        controller = make_controller(source, sender)
        await controller.start()

        source.push(make_sample())
        await drain()
        assert controller.pending_sends == 1

        await controller.stop()

        status = controller.status()
        assert status.state == TrackingState.STOPPED
        assert status.sent_count == 0
        assert status.last_sample is None
        assert controller.pending_sends == 0
        assert source.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_stop_when_stopped_is_noop(self) -> None:
        controller = make_controller()
        listener = MagicMock()
        controller.add_state_listener(listener)

        await controller.stop()

        listener.assert_not_called()


class TestSamples:

    @pytest.mark.asyncio
    async def test_valid_sample_is_sent(self, make_sample) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        sample = make_sample()
        source.push(sample)
        await drain()

        controller.sender.deliver.assert_awaited_once_with(sample, "tok")
        status = controller.status()
        assert status.last_sample == sample
        assert status.sent_count == 1

    @pytest.mark.asyncio
    async def test_quality_gate(self, make_sample) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        source.push(make_sample(accuracy=100))
        source.push(make_sample(captured_at=datetime.now(timezone.utc) - timedelta(minutes=10)))
        await drain()

        controller.sender.deliver.assert_not_awaited()
        assert controller.status().sent_count == 0

    @pytest.mark.asyncio
    async def test_naive_timestamp_sample_is_sent(self) -> None:
        """Время замера без зоны трактуется как UTC и проходит проверку возраста."""
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        sample = LocationSample(
            latitude=1.0,
            longitude=2.0,
            captured_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        source.push(sample)
        await drain()

        controller.sender.deliver.assert_awaited_once_with(sample, "tok")
        assert controller.status().sent_count == 1
        assert sample.captured_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_sample_from_worker_thread_is_sent(self, make_sample) -> None:
        """Замер из фонового потока доходит до отправки через цикл событий."""
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        sample = make_sample()
        await asyncio.to_thread(source.push, sample)
        await drain()

        controller.sender.deliver.assert_awaited_once_with(sample, "tok")
        assert controller.status().sent_count == 1

    @pytest.mark.asyncio
    async def test_signal_loss_from_worker_thread(self) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        await asyncio.to_thread(source.set_unavailable)
        await drain()

        assert controller.state == TrackingState.LOCATION_UNAVAILABLE

    def test_unknown_accuracy_is_valid(self, make_sample) -> None:
        controller = make_controller()

        assert controller.is_sample_valid(make_sample(accuracy=None))
        assert controller.is_sample_valid(make_sample(accuracy=99.9))

    @pytest.mark.asyncio
    async def test_network_failure_keeps_state(self, make_sample) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        client = httpx.AsyncClient(base_url="http://api.test", transport=httpx.MockTransport(handler))
        sender = RetrySender("http://api.test", max_attempts=2, retry_delays=[1], client=client, sleep=AsyncMock())
        source = ManualLocationSource()
        controller = make_controller(source, sender)
        await controller.start()

        source.push(make_sample())
        await asyncio.gather(*list(controller._tasks))

        assert controller.state == TrackingState.ACTIVE
        assert controller.pending_sends == 0
        await controller.stop()


class TestStateTransitions:

    @pytest.mark.asyncio
    async def test_signal_loss_and_recovery(self, make_sample) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        states: list[TrackingState] = []
        controller.add_state_listener(states.append)

        await controller.start()
        source.push(make_sample(latitude=40.0))
        source.set_unavailable()
        assert controller.is_tracking
        source.push(make_sample(latitude=40.01))
        await drain()

        assert states == [TrackingState.ACTIVE, TrackingState.LOCATION_UNAVAILABLE, TrackingState.ACTIVE]
        assert source.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_repeated_unavailable_then_sample(self, make_sample) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        states: list[TrackingState] = []
        controller.add_state_listener(states.append)

        await controller.start(5)
        source.set_unavailable()
        source.set_unavailable()
        source.push(make_sample())
        await drain()

        assert states == [TrackingState.ACTIVE, TrackingState.LOCATION_UNAVAILABLE, TrackingState.ACTIVE]
        assert source.intervals == [5]
        controller.sender.deliver.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_sample_does_not_recover(self, make_sample) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        source.set_unavailable()
        source.push(make_sample(accuracy=500))

        assert controller.state == TrackingState.LOCATION_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_permission_revoked_while_tracking(self, make_sample) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()
        source.push(make_sample())
        await drain()

        source.revoke_permission()

        assert controller.state == TrackingState.PERMISSION_DENIED
        assert controller.status().sent_count == 0
        assert source.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_listener_error_does_not_break_session(self) -> None:
        controller = make_controller()
        controller.add_state_listener(MagicMock(side_effect=RuntimeError("ui crashed")))

        assert await controller.start() == TrackingState.ACTIVE

    @pytest.mark.asyncio
    async def test_update_interval_resubscribes(self) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)
        await controller.start()

        await controller.update_interval(15)

        assert source.intervals == [15]
        assert controller.status().interval_seconds == 15

    @pytest.mark.asyncio
    async def test_update_interval_when_stopped(self) -> None:
        source = ManualLocationSource()
        controller = make_controller(source)

        await controller.update_interval(15)
        await controller.start()

        assert source.intervals == [15]
