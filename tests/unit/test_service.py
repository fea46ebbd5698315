"""Unit tests — ControlService state machine, config propagation and errors."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from flight_recorder.codec import MB
from flight_recorder.exceptions import (
    AlreadyRunningError,
    CapabilityError,
    InvalidDurationError,
    InvalidSizeError,
    NotRunningError,
    SnapshotInProgressError,
    SnapshotWriteError,
)
from flight_recorder.recorder.base import RecorderBackendError, SnapshotActiveError
from flight_recorder.service import (
    Configuration,
    ControlService,
    PartialConfiguration,
    StatusView,
)
from tests.conftest import FakeRecorder


@pytest.mark.unit
class TestStatus:
    def test_defaults_after_construction(self, service: ControlService) -> None:
        view = service.status()
        assert view == StatusView(enabled=False, period=timedelta(seconds=1), size=64 * MB)

    def test_wire_projection(self, service: ControlService) -> None:
        assert service.status().to_wire() == {"enabled": False, "period": "1s", "size": "64MB"}

    def test_custom_initial_configuration(self, fake_recorder: FakeRecorder) -> None:
        svc = ControlService(
            recorder=fake_recorder,
            config=Configuration(period=timedelta(seconds=5), size=MB),
        )
        assert svc.status().period == timedelta(seconds=5)
        assert svc.status().size == MB

    def test_status_does_not_touch_recorder(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.status()
        assert fake_recorder.calls == []


@pytest.mark.unit
class TestStart:
    def test_start_pushes_config_then_starts(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        assert fake_recorder.calls == ["set_period", "set_size", "start"]
        assert fake_recorder.period == timedelta(seconds=1)
        assert fake_recorder.size == 64 * MB
        assert service.status().enabled is True

    def test_start_twice_raises_already_running(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        before = service.status()
        calls_before = list(fake_recorder.calls)

        with pytest.raises(AlreadyRunningError):
            service.start()

        assert service.status() == before
        assert fake_recorder.calls == calls_before

    def test_capability_failure_is_wrapped(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        cause = RecorderBackendError("cannot allocate buffer")
        fake_recorder.start_error = cause

        with pytest.raises(CapabilityError) as exc_info:
            service.start()

        assert exc_info.value.__cause__ is cause
        assert "cannot allocate buffer" in exc_info.value.message
        assert service.status().enabled is False
        assert service.status().size == 64 * MB

    def test_start_applies_config_changed_while_stopped(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.update(PartialConfiguration(period=timedelta(seconds=3)))
        assert fake_recorder.period is None  # not pushed while stopped
        service.start()
        assert fake_recorder.period == timedelta(seconds=3)


@pytest.mark.unit
class TestStop:
    def test_stop_when_stopped_raises_not_running(self, service: ControlService) -> None:
        with pytest.raises(NotRunningError):
            service.stop()

    def test_stop_after_start(self, service: ControlService, fake_recorder: FakeRecorder) -> None:
        service.start()
        service.stop()
        assert service.status().enabled is False
        assert fake_recorder.calls[-1] == "stop"

    def test_stop_failure_is_wrapped(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        fake_recorder.stop_error = RuntimeError("boom")
        with pytest.raises(CapabilityError) as exc_info:
            service.stop()
        assert exc_info.value.operation == "stop"
        assert service.status().enabled is True

    def test_restart_cycle(self, service: ControlService) -> None:
        service.start()
        service.stop()
        service.start()
        assert service.status().enabled is True


@pytest.mark.unit
class TestUpdate:
    def test_update_period_while_stopped(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.update(PartialConfiguration.from_wire(period="2s"))
        assert service.status().period == timedelta(seconds=2)
        assert service.status().to_wire()["period"] == "2s"
        assert fake_recorder.calls == []

    def test_update_period_while_running_pushes_live(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        service.update(PartialConfiguration.from_wire(period="2s"))
        assert service.status().period == timedelta(seconds=2)
        assert fake_recorder.period == timedelta(seconds=2)

    def test_update_size_while_running_without_restart(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        fake_recorder.calls.clear()
        service.update(PartialConfiguration.from_wire(size="128MB"))
        assert fake_recorder.size == 128 * MB
        assert fake_recorder.calls == ["set_size"]
        assert service.status().enabled is True

    def test_omitted_fields_unchanged(self, service: ControlService) -> None:
        service.update(PartialConfiguration(size=1024))
        view = service.status()
        assert view.period == timedelta(seconds=1)
        assert view.size == 1024

    def test_empty_update_is_noop(self, service: ControlService) -> None:
        partial = PartialConfiguration()
        assert partial.is_empty()
        service.update(partial)
        assert service.status().size == 64 * MB

    def test_zero_size_is_a_present_value(self, service: ControlService) -> None:
        service.update(PartialConfiguration.from_wire(size=0))
        assert service.status().size == 0
        assert service.status().to_wire()["size"] == "0B"

    def test_live_push_failure_keeps_desired_config(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()

        def broken(size: int) -> None:
            raise RuntimeError("resize failed")

        fake_recorder.set_size = broken  # type: ignore[method-assign]
        with pytest.raises(CapabilityError):
            service.update(PartialConfiguration(size=MB))
        assert service.status().size == MB


@pytest.mark.unit
class TestConfiguration:
    def test_negative_size_rejected(self, fake_recorder: FakeRecorder) -> None:
        with pytest.raises(InvalidSizeError):
            ControlService(recorder=fake_recorder, config=Configuration(size=-1))

    def test_negative_period_rejected(self) -> None:
        with pytest.raises(InvalidDurationError):
            Configuration(period=timedelta(milliseconds=-5))

    def test_zero_values_allowed(self) -> None:
        config = Configuration(period=timedelta(0), size=0)
        assert config.size == 0


@pytest.mark.unit
class TestPartialConfiguration:
    def test_negative_period_rejected(self) -> None:
        with pytest.raises(InvalidDurationError):
            PartialConfiguration(period=timedelta(seconds=-1))

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(InvalidSizeError):
            PartialConfiguration(size=-1)

    def test_from_wire_invalid_values(self) -> None:
        with pytest.raises(InvalidDurationError):
            PartialConfiguration.from_wire(period="2x")
        with pytest.raises(InvalidSizeError):
            PartialConfiguration.from_wire(size="abc")

    def test_from_wire_distinguishes_omitted(self) -> None:
        partial = PartialConfiguration.from_wire(period=None, size="0")
        assert partial.period is None
        assert partial.size == 0


@pytest.mark.unit
class TestSnapshot:
    def test_snapshot_when_stopped_raises(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        with pytest.raises(NotRunningError):
            service.snapshot()
        assert "write_snapshot" not in fake_recorder.calls

    def test_snapshot_returns_recorder_bytes(self, service: ControlService) -> None:
        service.start()
        assert service.snapshot() == b"fake-trace-data"

    def test_snapshot_active_maps_to_in_progress(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        fake_recorder.snapshot_error = SnapshotActiveError("busy")
        with pytest.raises(SnapshotInProgressError) as exc_info:
            service.snapshot()
        assert exc_info.value.retryable is True

    def test_other_write_errors_map_to_write_failed(
        self, service: ControlService, fake_recorder: FakeRecorder
    ) -> None:
        service.start()
        cause = OSError("disk full")
        fake_recorder.snapshot_error = cause
        with pytest.raises(SnapshotWriteError) as exc_info:
            service.snapshot()
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.retryable is False
        assert "disk full" in exc_info.value.message


@pytest.mark.unit
class TestConcurrency:
    def test_status_never_observes_half_applied_update(self, fake_recorder: FakeRecorder) -> None:
        svc = ControlService(recorder=fake_recorder)
        svc.start()
        fake_recorder.set_delay = 0.02  # widen the window between the two live pushes

        old = (timedelta(seconds=1), 64 * MB)
        new = (timedelta(seconds=2), 128 * MB)
        observed: list[tuple[timedelta, int]] = []
        observed_lock = threading.Lock()
        stop = threading.Event()

        def reader() -> None:
            while not stop.is_set():
                view = svc.status()
                with observed_lock:
                    observed.append((view.period, view.size))

        readers = [threading.Thread(target=reader) for _ in range(8)]
        for t in readers:
            t.start()
        svc.update(PartialConfiguration(period=new[0], size=new[1]))
        stop.set()
        for t in readers:
            t.join(timeout=5)

        assert observed
        assert set(observed) <= {old, new}
        assert svc.status().period == new[0]

    def test_concurrent_starts_only_one_succeeds(self, service: ControlService) -> None:
        results: list[str] = []
        results_lock = threading.Lock()

        def try_start() -> None:
            try:
                service.start()
                outcome = "ok"
            except AlreadyRunningError:
                outcome = "conflict"
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=try_start) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert results.count("ok") == 1
        assert results.count("conflict") == 9

    def test_readers_wait_for_an_in_flight_update(self, fake_recorder: FakeRecorder) -> None:
        svc = ControlService(recorder=fake_recorder)
        svc.start()

        entered = threading.Event()
        release = threading.Event()
        original_set_period = fake_recorder.set_period

        def held_set_period(period: timedelta) -> None:
            entered.set()
            release.wait(timeout=5)
            original_set_period(period)

        fake_recorder.set_period = held_set_period  # type: ignore[method-assign]

        writer = threading.Thread(
            target=svc.update, args=(PartialConfiguration(period=timedelta(seconds=7)),)
        )
        writer.start()
        assert entered.wait(timeout=5)

        seen: dict[str, object] = {}
        status_done = threading.Event()
        snapshot_done = threading.Event()

        def read_status() -> None:
            seen["status"] = svc.status()
            status_done.set()

        def read_snapshot() -> None:
            seen["snapshot"] = svc.snapshot()
            snapshot_done.set()

        readers = [
            threading.Thread(target=read_status),
            threading.Thread(target=read_snapshot),
        ]
        try:
            for t in readers:
                t.start()
            assert not status_done.wait(timeout=0.1)
            assert not snapshot_done.wait(timeout=0.01)
            assert "write_snapshot" not in fake_recorder.calls
        finally:
            release.set()
            writer.join(timeout=5)
            for t in readers:
                t.join(timeout=5)

        assert status_done.is_set() and snapshot_done.is_set()
        assert seen["status"].period == timedelta(seconds=7)  # type: ignore[attr-defined]
        assert seen["snapshot"] == b"fake-trace-data"
        assert fake_recorder.period == timedelta(seconds=7)
