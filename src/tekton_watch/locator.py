"""PipelineRun lookup by trigger event id."""

import logging

from .http import TektonClient
from .models import PipelineRunList

logger = logging.getLogger(__name__)


class RunLocator:
    """Queries an endpoint for the PipelineRun(s) created by a trigger event."""

    def __init__(self, client: TektonClient):
        self.client = client

    def find_run(self, endpoint: str, trigger_id: str) -> PipelineRunList:
        """
        Fetch the runs labelled with trigger_id from endpoint.

        An empty list is a valid answer meaning the run has not been
        scheduled yet.

        Raises:
            TransportError, HTTPError, DecodeError
        """
        runs = self.client.list_pipeline_runs(endpoint, trigger_id)
        logger.debug("%s: %d PipelineRun(s) for event %s", endpoint, len(runs.items), trigger_id)
        return runs

    @staticmethod
    def is_complete(runs: PipelineRunList) -> bool:
        return runs.is_complete()
