"""
Polling loops for the producer and the consumer.

Each worker runs "body -> sleep -> body" on its own thread until stopped.
The sleep is a wait on a shared stop event, so ``stop()`` interrupts it and
the loop exits at the next iteration boundary. An iteration in progress
always runs to completion.
"""

import threading
from typing import Callable, List, Optional

from filelog.consumer.consumer import Consumer
from filelog.core.errors import LogError
from filelog.producer.producer import Producer
from filelog.utils.logging import bind_worker, get_logger

logger = get_logger(__name__)


class PollingWorker:
    """
    Runs a callable repeatedly on a background thread.

    A failing iteration is logged and the loop moves on to the next one; it
    never takes down the thread or any other worker.

    Attributes:
        name: Worker name used for the thread and log context
        interval_ms: Pause between iterations
        max_iterations: Stop after this many iterations (None = forever)
    """

    def __init__(
        self,
        name: str,
        body: Callable[[], object],
        interval_ms: int,
        stop_event: Optional[threading.Event] = None,
        max_iterations: Optional[int] = None,
    ):
        """
        Initialize polling worker.

        Args:
            name: Worker name
            body: Iteration body
            interval_ms: Pause between iterations in milliseconds
            stop_event: Cancellation signal (shared with other workers)
            max_iterations: Optional iteration limit
        """
        self.name = name
        self.body = body
        self.interval_ms = interval_ms
        self.max_iterations = max_iterations
        self.stop_event = stop_event or threading.Event()

        self.iterations = 0
        self.failures = 0
        self._thread: Optional[threading.Thread] = None

    def run_iteration(self) -> bool:
        """
        Run the body once, containing any failure.

        Returns:
            True if the iteration succeeded
        """
        self.iterations += 1
        try:
            self.body()
            return True
        except LogError as e:
            self.failures += 1
            logger.error(
                "Iteration failed",
                iteration=self.iterations,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        except Exception as e:
            self.failures += 1
            logger.error(
                "Unexpected error in iteration",
                iteration=self.iterations,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        return False

    def _loop(self) -> None:
        bind_worker(self.name)
        logger.info("Worker started", interval_ms=self.interval_ms)

        while not self.stop_event.is_set():
            self.run_iteration()

            if self.max_iterations is not None and self.iterations >= self.max_iterations:
                break

            self.stop_event.wait(self.interval_ms / 1000.0)

        logger.info(
            "Worker stopped",
            iterations=self.iterations,
            failures=self.failures,
        )

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._thread = threading.Thread(
            target=self._loop,
            name=f"filelog-{self.name}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class Scheduler:
    """
    Runs a producer loop and a consumer loop side by side.

    The two loops coordinate only through the log lock inside Producer and
    Consumer; the scheduler adds the shared stop signal.

    Example:
        scheduler = Scheduler(producer, consumer)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        producer: Producer,
        consumer: Consumer,
        max_iterations: Optional[int] = None,
    ):
        """
        Initialize scheduler.

        Args:
            producer: Producer whose run_once drives the producer loop
            consumer: Consumer whose poll drives the consumer loop
            max_iterations: Optional per-worker iteration limit
        """
        self.producer = producer
        self.consumer = consumer
        self.stop_event = threading.Event()

        self.producer_worker = PollingWorker(
            name="producer",
            body=producer.run_once,
            interval_ms=producer.config.interval_ms,
            stop_event=self.stop_event,
            max_iterations=max_iterations,
        )
        self.consumer_worker = PollingWorker(
            name="consumer",
            body=consumer.poll,
            interval_ms=consumer.config.interval_ms,
            stop_event=self.stop_event,
            max_iterations=max_iterations,
        )

    @property
    def workers(self) -> List[PollingWorker]:
        return [self.producer_worker, self.consumer_worker]

    def start(self) -> None:
        """Start both loops."""
        for worker in self.workers:
            worker.start()

        logger.info("Scheduler started")

    def stop(self, timeout: Optional[float] = 10.0) -> None:
        """
        Signal both loops to stop and wait for them.

        Args:
            timeout: Max seconds to wait per worker
        """
        self.stop_event.set()

        for worker in self.workers:
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning("Worker did not stop in time", worker=worker.name)

        logger.info(
            "Scheduler stopped",
            producer=self.producer.metrics(),
            consumer=self.consumer.metrics(),
        )

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until both loops exit (bounded runs) or timeout elapses."""
        for worker in self.workers:
            worker.join(timeout=timeout)

    def is_running(self) -> bool:
        return any(worker.is_alive() for worker in self.workers)
