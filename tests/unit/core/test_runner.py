"""Unit tests for the service runner."""

import signal
from typing import Any
from unittest.mock import patch

import pytest
from servicectl.core.runner import _stop_signals, run_service


class TestStopSignals:
    """Tests for the signals that end a run."""

    def test_console_mode(self) -> None:
        """Console mode stops on Ctrl+C only."""
        assert _stop_signals(supervised=False) == [signal.SIGINT]

    def test_supervised_mode(self) -> None:
        """Supervised mode also stops on SIGTERM."""
        signals = _stop_signals(supervised=True)
        assert signals[:2] == [signal.SIGINT, signal.SIGTERM]


class TestRunService:
    """Tests for run_service."""

    def test_returns_exit_code_when_work_ends(self, instance_factory: Any) -> None:
        """An instance that exits on its own ends the run with its code."""
        instance = instance_factory(exit_after=3, exit_code=7)

        exit_code = run_service(instance, supervised=False, poll_interval=0)

        assert exit_code == 7
        assert instance.started is True
        assert instance.stopped is True
        assert instance.polls == 3

    def test_signal_requests_stop(self, instance_factory: Any) -> None:
        """A stop signal ends the run with exit code 0."""
        instance = instance_factory()
        handlers: dict[int, Any] = {}

        def fake_signal(signum: int, handler: Any) -> Any:
            handlers[signum] = handler
            return signal.SIG_DFL

        original_poll = instance.poll

        def poll() -> int | None:
            result = original_poll()
            if instance.polls == 2:
                handlers[signal.SIGTERM](signal.SIGTERM, None)
            return result

        instance.poll = poll  # type: ignore[method-assign]
        with patch("servicectl.core.runner.signal.signal", side_effect=fake_signal):
            exit_code = run_service(instance, supervised=True, poll_interval=0)

        assert exit_code == 0
        assert instance.stopped is True
        assert instance.polls == 2

    def test_restores_previous_handlers(self, instance_factory: Any) -> None:
        """Signal handlers are restored after the run."""
        before = signal.getsignal(signal.SIGINT)

        run_service(instance_factory(exit_after=1), supervised=False, poll_interval=0)

        assert signal.getsignal(signal.SIGINT) is before

    def test_stops_instance_on_error(self, instance_factory: Any) -> None:
        """The instance is stopped when polling raises."""
        instance = instance_factory()

        def broken_poll() -> int | None:
            raise RuntimeError("boom")

        instance.poll = broken_poll  # type: ignore[method-assign]

        with pytest.raises(RuntimeError, match="boom"):
            run_service(instance, supervised=False, poll_interval=0)

        assert instance.stopped is True


    def test_start_failure_restores_handlers(self, instance_factory: Any) -> None:
        """A failing start propagates and leaves the signal handlers as they were."""
        instance = instance_factory()
        before = signal.getsignal(signal.SIGINT)

        def broken_start() -> None:
            raise RuntimeError("Cannot start 'nope.exe'")

        instance.start = broken_start  # type: ignore[method-assign]

        with pytest.raises(RuntimeError, match="Cannot start"):
            run_service(instance, supervised=False, poll_interval=0)

        assert signal.getsignal(signal.SIGINT) is before
        assert instance.polls == 0
