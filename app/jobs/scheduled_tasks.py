"""Periodic background loops.

Three independent loops, each on its own ``schedule.Scheduler`` and thread:

- stream poll: ingest inbound events
- retry sweep: re-drive failed deliveries
- heartbeat sweep: keep push connections alive and prune dead ones

They coordinate only through the stores and registry they share, so a slow
stream read never delays heartbeats.
"""

import threading
from typing import TYPE_CHECKING, Dict, List, NamedTuple, Tuple

import schedule

from infrastructure.logging import get_module_logger

if TYPE_CHECKING:
    from infrastructure.services.container import ServiceContainer

logger = get_module_logger()


class RunningLoop(NamedTuple):
    name: str
    stop_event: threading.Event
    thread: threading.Thread


def safe_run(job):
    def wrapper(*args, **kwargs):
        try:
            return job(*args, **kwargs)
        except Exception as e:
            logger.error(
                "safe_run_error",
                error=str(e),
                function=getattr(job, "__name__", "unknown"),
                module=getattr(job, "__module__", "unknown"),
                job_args=args,
                job_kwargs=kwargs,
            )
            return None

    return wrapper


def init(services: "ServiceContainer") -> Dict[str, schedule.Scheduler]:
    """Register the periodic jobs, one scheduler per loop.

    Returns:
        Mapping of loop name to its scheduler.
    """
    settings = services.settings
    schedulers: Dict[str, schedule.Scheduler] = {}

    if settings.streams.ingestion_enabled:
        poll = schedule.Scheduler()
        poll.every(settings.streams.poll_interval_seconds).seconds.do(
            safe_run(services.ingestor.poll_once)
        )
        schedulers["stream-poll"] = poll
    else:
        logger.info("stream_ingestion_disabled")

    retry = schedule.Scheduler()
    retry.every(settings.retry.sweep_delay_seconds).seconds.do(
        safe_run(services.retry_worker.process_batch)
    )
    schedulers["retry-sweep"] = retry

    heartbeat = schedule.Scheduler()
    heartbeat.every(settings.push.heartbeat_interval_seconds).seconds.do(
        safe_run(services.registry.heartbeat_sweep)
    )
    schedulers["heartbeat-sweep"] = heartbeat

    logger.info("scheduled_tasks_initialized", loops=list(schedulers))
    return schedulers


def run_continuously(
    scheduler: schedule.Scheduler, interval: float = 1, name: str = "scheduler"
) -> Tuple[threading.Event, threading.Thread]:
    """Continuously run, while executing pending jobs at each
    elapsed time interval.
    @return (cease_continuous_run, thread): the threading.Event
    which can be set to cease continuous run, and the thread
    running the loop. Please note that it is
    *intended behavior that run_continuously() does not run
    missed jobs*.
    """
    cease_continuous_run = threading.Event()

    class ScheduleThread(threading.Thread):
        def run(self):
            while not cease_continuous_run.is_set():
                scheduler.run_pending()
                cease_continuous_run.wait(interval)

    continuous_thread = ScheduleThread(name=name, daemon=True)
    continuous_thread.start()
    return cease_continuous_run, continuous_thread


def start(services: "ServiceContainer") -> List[RunningLoop]:
    """Start every loop on its own thread.

    Returns:
        Running loops, one per scheduler.
    """
    loops = []
    for name, scheduler in init(services).items():
        stop_event, thread = run_continuously(scheduler, interval=0.1, name=name)
        loops.append(RunningLoop(name, stop_event, thread))
    return loops


def stop(loops: List[RunningLoop], timeout: float = 10.0) -> None:
    """Signal every loop, then wait for in-progress jobs to finish.

    Loops are all signalled before any join so they wind down together.
    """
    for loop in loops:
        loop.stop_event.set()
    for loop in loops:
        loop.thread.join(timeout)
        if loop.thread.is_alive():
            logger.warning("scheduled_loop_stop_timeout", loop=loop.name, timeout=timeout)

