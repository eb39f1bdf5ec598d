"""
Watch loop: locate a triggered PipelineRun, stream its logs until it
completes, then report the exit status of its first failed step.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .config import WatchConfig
from .errors import (
    EXIT_SUCCESS,
    RECOVERABLE_ERRORS,
    REQUEST_ERRORS,
    NotFound,
    RetryBudgetExhausted,
    StepFailure,
    WatchCancelled,
    WatchTimeout,
)
from .http import TektonClient
from .locator import RunLocator
from .models import PipelineRunList, PodSteps
from .resolver import EndpointResolver
from .tailer import LogSink, LogTailer

logger = logging.getLogger(__name__)


class WatchState(str, Enum):
    LOCATING = "locating"
    STREAMING = "streaming"
    DONE = "done"


class Watcher:
    """
    Drives one watch session.

    Owns the endpoint cache (via its resolver), the log state table (via its
    tailer) and the retry counter. Sleeps wait on a cancellation event so
    ``cancel()`` interrupts them.
    """

    def __init__(
        self,
        config: WatchConfig,
        client: TektonClient,
        sink: LogSink,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.locator = RunLocator(client)
        self.resolver = EndpointResolver(self.locator, config.endpoints)
        self.tailer = LogTailer(client, sink, config.log_diff_mode)
        self.state = WatchState.LOCATING
        self.attempts = 0

        self._cancelled = threading.Event()
        self._sleep = sleep or self._wait
        self._clock = clock
        self._started: Optional[float] = None

    def cancel(self) -> None:
        """Ask the loop to stop at its next suspension point."""
        self._cancelled.set()

    def _wait(self, seconds: float) -> None:
        self._cancelled.wait(seconds)

    def run(self, trigger_id: str) -> int:
        """
        Watch the run for trigger_id to completion.

        Returns:
            0 when no step failed

        Raises:
            StepFailure: A step exited nonzero; carries its exit code
            RetryBudgetExhausted: The run never showed up
            NotFound: The run disappeared while being watched
            WatchTimeout, WatchCancelled
        """
        self._started = self._clock()
        self.state = WatchState.LOCATING
        try:
            endpoint, runs = self._locate(trigger_id)
            self.state = WatchState.STREAMING
            logger.info("Watching PipelineRun %s", ", ".join(run.name for run in runs.items))

            runs, pod_steps = self._stream(trigger_id, endpoint, runs)
            return self._finish(runs, pod_steps)
        finally:
            self.state = WatchState.DONE

    def _locate(self, trigger_id: str) -> Tuple[str, PipelineRunList]:
        retryer = Retrying(
            stop=stop_after_attempt(self.config.max_retries + 1) | self._should_stop,
            wait=wait_fixed(self.config.retry_interval),
            retry=retry_if_exception_type(RECOVERABLE_ERRORS),
            sleep=self._sleep,
            before_sleep=self._log_attempt,
        )
        try:
            return retryer(self._attempt_locate, trigger_id)
        except RetryError as e:
            self._check_interrupted()
            raise RetryBudgetExhausted(trigger_id, e.last_attempt.attempt_number) from e.last_attempt.exception()

    def _attempt_locate(self, trigger_id: str) -> Tuple[str, PipelineRunList]:
        self._check_interrupted()
        self.attempts += 1
        return self.resolver.resolve(trigger_id)

    def _log_attempt(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, NotFound):
            logger.info("%s (attempt %d/%d)", exc, retry_state.attempt_number, self.config.max_retries + 1)
        else:
            logger.warning(
                "PipelineRun lookup failed (attempt %d/%d): %s",
                retry_state.attempt_number,
                self.config.max_retries + 1,
                exc,
            )

    def _stream(
        self, trigger_id: str, endpoint: str, runs: PipelineRunList
    ) -> Tuple[PipelineRunList, List[PodSteps]]:
        # Failed tails after the run completed; bounded by max_retries
        final_failures = 0
        while True:
            self._check_interrupted()

            pod_steps: Optional[List[PodSteps]] = None
            try:
                pod_steps = self.tailer.tail(endpoint, runs)
            except REQUEST_ERRORS as e:
                logger.warning("Log tailing failed, retrying next poll: %s", e)
                if self.locator.is_complete(runs):
                    final_failures += 1
                    if final_failures > self.config.max_retries:
                        raise

            complete = self.locator.is_complete(runs)
            if complete and pod_steps is not None:
                return runs, pod_steps

            self._sleep(self.config.poll_interval)
            self._check_interrupted()
            if not complete:
                runs = self._refresh(trigger_id, runs)

    def _refresh(self, trigger_id: str, runs: PipelineRunList) -> PipelineRunList:
        try:
            _, fresh = self.resolver.resolve(trigger_id)
        except NotFound:
            raise NotFound(trigger_id, f"PipelineRun for event {trigger_id} disappeared") from None
        except REQUEST_ERRORS as e:
            logger.warning("Refreshing PipelineRun failed, keeping last state: %s", e)
            return runs
        return fresh

    def _finish(self, runs: PipelineRunList, pod_steps: List[PodSteps]) -> int:
        for run in runs.items:
            condition = run.succeeded
            if condition is not None:
                logger.info(
                    "PipelineRun %s finished: %s %s",
                    run.name,
                    condition.reason or condition.status,
                    condition.message or "",
                )

        for ps in pod_steps:
            step = ps.failed_step()
            if step is not None:
                raise StepFailure(step.exit_code, ps.pod_name, step.container)

        return EXIT_SUCCESS

    def _expired(self) -> bool:
        if self.config.max_duration is None or self._started is None:
            return False
        return self._clock() - self._started >= self.config.max_duration

    def _should_stop(self, retry_state: RetryCallState) -> bool:
        return self._cancelled.is_set() or self._expired()

    def _check_interrupted(self) -> None:
        if self._cancelled.is_set():
            raise WatchCancelled("Watch cancelled")
        if self._expired():
            raise WatchTimeout(f"Watch exceeded {self.config.max_duration:g}s")
