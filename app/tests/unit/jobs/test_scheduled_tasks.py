"""Unit tests for the periodic background loops."""

import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from infrastructure.configuration import PushSettings, RetrySettings, Settings, StreamSettings
from jobs import scheduled_tasks


@pytest.fixture
def services():
    container = MagicMock()
    container.settings = Settings(
        streams=StreamSettings(STREAM_POLL_INTERVAL_SECONDS=2),
        retry=RetrySettings(RETRY_SWEEP_DELAY_SECONDS=60),
        push=PushSettings(PUSH_HEARTBEAT_INTERVAL_SECONDS=30),
    )
    return container


@pytest.mark.unit
class TestSafeRun:
    def test_returns_job_result(self):
        assert scheduled_tasks.safe_run(lambda: 5)() == 5

    @patch("jobs.scheduled_tasks.logger")
    def test_logs_and_swallows_errors(self, mock_logger):
        def job(*args, **kwargs):
            raise ValueError("Error")

        job.__module__ = "jobs.test"

        assert scheduled_tasks.safe_run(job)("arg", key="value") is None
        mock_logger.error.assert_called_once_with(
            "safe_run_error",
            error="Error",
            function="job",
            module="jobs.test",
            job_args=("arg",),
            job_kwargs={"key": "value"},
        )


@pytest.mark.unit
class TestInit:
    def test_one_scheduler_per_loop(self, services):
        schedulers = scheduled_tasks.init(services)

        assert list(schedulers) == ["stream-poll", "retry-sweep", "heartbeat-sweep"]
        intervals = {
            name: scheduler.jobs[0].interval for name, scheduler in schedulers.items()
        }
        assert intervals == {"stream-poll": 2, "retry-sweep": 60, "heartbeat-sweep": 30}

    def test_ingestion_disabled(self, services):
        services.settings = Settings(streams=StreamSettings(STREAM_INGESTION_ENABLED=False))

        assert "stream-poll" not in scheduled_tasks.init(services)

    def test_jobs_call_services(self, services):
        schedulers = scheduled_tasks.init(services)

        for scheduler in schedulers.values():
            scheduler.run_all()

        services.ingestor.poll_once.assert_called_once()
        services.retry_worker.process_batch.assert_called_once()
        services.registry.heartbeat_sweep.assert_called_once()

    def test_failing_loop_does_not_stop_the_others(self, services):
        services.ingestor.poll_once.side_effect = RuntimeError("redis down")
        schedulers = scheduled_tasks.init(services)

        for scheduler in schedulers.values():
            scheduler.run_all()

        services.registry.heartbeat_sweep.assert_called_once()


@pytest.mark.unit
class TestRunContinuously:
    def test_runs_pending_until_stopped(self):
        ran = threading.Event()
        scheduler = MagicMock()
        scheduler.run_pending.side_effect = ran.set

        stop_event, thread = scheduled_tasks.run_continuously(
            scheduler, interval=0.01, name="t"
        )

        assert ran.wait(1)
        scheduled_tasks.stop([scheduled_tasks.RunningLoop("t", stop_event, thread)])
        assert stop_event.is_set()
        assert not thread.is_alive()

    def test_stop_waits_for_the_running_job(self):
        started = threading.Event()
        finished = threading.Event()

        def slow_job():
            started.set()
            time.sleep(0.2)
            finished.set()

        scheduler = MagicMock()
        scheduler.run_pending.side_effect = slow_job
        stop_event, thread = scheduled_tasks.run_continuously(
            scheduler, interval=0.01, name="slow"
        )
        assert started.wait(1)

        scheduled_tasks.stop([scheduled_tasks.RunningLoop("slow", stop_event, thread)])

        assert finished.is_set()
        assert not thread.is_alive()

    @patch("jobs.scheduled_tasks.logger")
    def test_stop_gives_up_after_timeout(self, mock_logger):
        stuck = MagicMock()
        stuck.is_alive.return_value = True

        scheduled_tasks.stop(
            [scheduled_tasks.RunningLoop("stuck", threading.Event(), stuck)], timeout=0.01
        )

        stuck.join.assert_called_once_with(0.01)
        mock_logger.warning.assert_called_once_with(
            "scheduled_loop_stop_timeout", loop="stuck", timeout=0.01
        )

    @patch("jobs.scheduled_tasks.run_continuously")
    def test_start_runs_each_loop(self, mock_run, services):
        mock_run.return_value = (threading.Event(), MagicMock())

        loops = scheduled_tasks.start(services)

        assert [loop.name for loop in loops] == [
            "stream-poll",
            "retry-sweep",
            "heartbeat-sweep",
        ]
        assert [c.kwargs["name"] for c in mock_run.call_args_list] == [
            "stream-poll",
            "retry-sweep",
            "heartbeat-sweep",
        ]
