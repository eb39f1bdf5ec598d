"""Exception taxonomy and process exit codes for tekton-watch."""

from typing import Optional

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_TIMEOUT = 124
EXIT_INTERRUPTED = 130


class WatchError(Exception):
    """Base class for errors raised while watching a run."""

    exit_code = EXIT_FAILURE


class TransportError(WatchError):
    """Connection, DNS or timeout failure talking to the API."""

    def __init__(self, url: str, cause: Optional[Exception] = None):
        super().__init__(f"GET {url} failed: {cause}")
        self.url = url
        self.cause = cause


class HTTPError(WatchError):
    """Request reached the API but the status code was not accepted."""

    def __init__(self, url: str, status_code: int, reason: str = ""):
        super().__init__(f"GET {url} returned {status_code} {reason}".rstrip())
        self.url = url
        self.status_code = status_code


class DecodeError(WatchError):
    """Response body could not be decoded into the expected structure."""

    def __init__(self, url: str, cause: Optional[Exception] = None):
        super().__init__(f"Malformed response from {url}: {cause}")
        self.url = url
        self.cause = cause


class NotFound(WatchError):
    """No PipelineRun matches the trigger id (yet)."""

    def __init__(self, trigger_id: str, message: Optional[str] = None):
        super().__init__(message or f"No PipelineRun found for event {trigger_id}")
        self.trigger_id = trigger_id


class RetryBudgetExhausted(WatchError):
    """The run never showed up within the configured number of retries."""

    def __init__(self, trigger_id: str, attempts: int):
        super().__init__(f"Gave up locating PipelineRun for event {trigger_id} after {attempts} attempts")
        self.trigger_id = trigger_id
        self.attempts = attempts


class StepFailure(WatchError):
    """A step of the watched run terminated with a nonzero exit code."""

    def __init__(self, exit_code: int, pod_name: str = "", container: str = ""):
        where = f" ({pod_name}/{container})" if pod_name else ""
        super().__init__(f"Step failed with exit code {exit_code}{where}")
        self.exit_code = exit_code
        self.pod_name = pod_name
        self.container = container


class WatchTimeout(WatchError):
    """The total watch duration cap was reached."""

    exit_code = EXIT_TIMEOUT


class WatchCancelled(WatchError):
    """The watch was cancelled cooperatively."""

    exit_code = EXIT_INTERRUPTED


# Failures that count as a failed attempt while locating the run
RECOVERABLE_ERRORS = (NotFound, TransportError, HTTPError, DecodeError)

# Failures of a single request
REQUEST_ERRORS = (TransportError, HTTPError, DecodeError)
