"""
Command-line entry point for tekton-watch.

Follows the PipelineRun created by a trigger event and exits with the
status of its first failed step.
"""

import logging
import sys
from typing import Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from .config import WatchConfig
from .errors import EXIT_FAILURE, EXIT_INTERRUPTED, WatchError
from .http import TektonClient
from .models import DiffMode
from .render import Renderer, configure_logging
from .watch import Watcher

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tkn-watch",
    help="Stream the logs of a triggered Tekton PipelineRun and relay its exit status",
    add_completion=False,
)


@app.command()
def watch(
    event_id: Annotated[
        Optional[str], typer.Argument(help="Trigger event id (used when EVENT_ID is not set)")
    ] = None,
    url: Annotated[
        Optional[str], typer.Option("--url", "-u", help="Tekton API base URL, or a comma-separated list")
    ] = None,
    namespace: Annotated[Optional[str], typer.Option("--namespace", "-n", help="Pipeline namespace")] = None,
    token: Annotated[Optional[str], typer.Option("--token", "-t", help="Bearer token")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Logging level")] = None,
    max_retries: Annotated[
        Optional[int], typer.Option("--max-retries", help="Failed lookups tolerated while locating the run")
    ] = None,
    retry_interval: Annotated[
        Optional[float], typer.Option("--retry-interval", help="Seconds between lookups while locating")
    ] = None,
    poll_interval: Annotated[
        Optional[float], typer.Option("--poll-interval", help="Seconds between log polls")
    ] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Request timeout")] = None,
    max_duration: Annotated[
        Optional[float], typer.Option("--max-duration", help="Give up after this many seconds")
    ] = None,
    diff_mode: Annotated[
        Optional[DiffMode], typer.Option("--diff-mode", help="How new log output is detected")
    ] = None,
    no_verify: Annotated[bool, typer.Option("--no-verify", help="Skip TLS verify")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress status messages")] = False,
):
    """
    Watch the PipelineRun created by EVENT_ID.

    Examples:
      EVENT_ID=0a1b2c tkn-watch

      tkn-watch 0a1b2c --url http://tekton-a:9097,http://tekton-b:9097
    """
    renderer = Renderer(quiet=quiet)

    overrides = {
        "api": url,
        "namespace": namespace,
        "jwt": token,
        "log_level": log_level,
        "max_retries": max_retries,
        "retry_interval": retry_interval,
        "poll_interval": poll_interval,
        "request_timeout": timeout,
        "max_duration": max_duration,
        "log_diff_mode": diff_mode,
    }
    if no_verify:
        overrides["verify_tls"] = False

    try:
        config = WatchConfig(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        renderer.print_error(f"Invalid configuration: {e}")
        raise typer.Exit(EXIT_FAILURE)

    configure_logging(config.log_level)

    trigger_id = config.event_id or event_id
    if not trigger_id:
        renderer.print_error("event ID required")
        raise typer.Exit(EXIT_FAILURE)
    if config.event_id and event_id and event_id != config.event_id:
        logger.warning("EVENT_ID is set, ignoring argument %s", event_id)

    exit_code = run_watch(config, trigger_id, renderer)
    raise typer.Exit(exit_code)


def run_watch(config: WatchConfig, trigger_id: str, renderer: Renderer) -> int:
    """Watch trigger_id and map the outcome to a process exit code."""
    try:
        with TektonClient(config) as client:
            watcher = Watcher(config, client, renderer.print_log)
            exit_code = watcher.run(trigger_id)
    except WatchError as e:
        renderer.print_error(str(e))
        return e.exit_code
    except FileNotFoundError as e:
        renderer.print_error(str(e))
        return EXIT_FAILURE

    renderer.print_success("PipelineRun completed successfully")
    return exit_code


def cli_main():
    """Entry point for console script."""
    try:
        app()
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    cli_main()
