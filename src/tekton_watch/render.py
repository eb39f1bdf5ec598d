"""
Output rendering for tekton-watch.

Log text from the watched containers goes to stdout verbatim; status
messages are styled with rich.
"""

import logging
import sys
from typing import Optional

from rich.console import Console


class Renderer:
    """Output sink for streamed logs and status messages."""

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        """Initialize renderer."""
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def print_log(self, text: str) -> None:
        """Print a chunk of container log output exactly as received."""
        # Bypass rich rendering so tabs and control characters survive
        stream = self.console.file
        stream.write(text + "\n")
        stream.flush()

    def print(self, message: str, **kwargs) -> None:
        """Print a status message unless quiet."""
        if self.quiet:
            return
        self.err_console.print(message, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self.err_console.print(f"Error: {message}", style="red", markup=False)

    def print_success(self, message: str) -> None:
        """Print success message."""
        self.print(message, style="green")


def configure_logging(level: str) -> None:
    """Configure root logging on stderr."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    if level != "DEBUG":
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
