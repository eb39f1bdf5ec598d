"""
Endpoint discovery for multi-cluster setups.

When several Tekton API addresses are configured, the first one that
hosts a run for the trigger id wins and is used for the rest of the
process.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .errors import REQUEST_ERRORS, NotFound, WatchError
from .locator import RunLocator
from .models import PipelineRunList

logger = logging.getLogger(__name__)


class EndpointResolver:
    """
    Resolves which configured endpoint hosts the run for a trigger id.

    The winning endpoint is cached in ``active``; once set it is never
    changed or cleared.
    """

    def __init__(self, locator: RunLocator, candidates: Sequence[str]):
        if not candidates:
            raise ValueError("at least one endpoint is required")
        self.locator = locator
        self.candidates: List[str] = list(candidates)
        self.active: Optional[str] = self.candidates[0] if len(self.candidates) == 1 else None

    def resolve(self, trigger_id: str) -> Tuple[str, PipelineRunList]:
        """
        Locate the run for trigger_id.

        Returns:
            Tuple of (endpoint, runs) where runs has at least one item

        Raises:
            NotFound: If no endpoint currently hosts a matching run
            TransportError, HTTPError, DecodeError: If the known endpoint
                fails, or every candidate failed
        """
        if self.active is not None:
            runs = self.locator.find_run(self.active, trigger_id)
            if not runs.items:
                raise NotFound(trigger_id)
            return self.active, runs

        return self._discover(trigger_id)

    def _discover(self, trigger_id: str) -> Tuple[str, PipelineRunList]:
        last_error: Optional[WatchError] = None
        failures = 0

        for endpoint in self.candidates:
            try:
                runs = self.locator.find_run(endpoint, trigger_id)
            except REQUEST_ERRORS as e:
                logger.warning("Skipping %s: %s", endpoint, e)
                last_error = e
                failures += 1
                continue

            if runs.items:
                logger.info("Using Tekton API at %s", endpoint)
                self.active = endpoint
                return endpoint, runs

        if last_error is not None and failures == len(self.candidates):
            raise last_error
        raise NotFound(trigger_id, f"No endpoint hosts a PipelineRun for event {trigger_id} yet")
