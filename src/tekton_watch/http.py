"""
HTTP client for the Tekton and Kubernetes REST APIs.

Builds the label-selector queries tekton-watch issues, attaches
authentication headers and maps failures onto the watch error taxonomy.
"""

import logging
from typing import Dict, Optional, Type, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from . import __version__
from .auth import load_token, redact_token
from .config import WatchConfig
from .errors import DecodeError, HTTPError, TransportError
from .models import PipelineRunList, TaskRunList

logger = logging.getLogger(__name__)

API_GROUP = "tekton.dev"
API_VERSION = "v1beta1"
TRIGGER_EVENT_LABEL = "triggers.tekton.dev/triggers-eventid"
PIPELINE_RUN_LABEL = "tekton.dev/pipelineRun"
SSO_HEADER = "x-mesh-sso"

# Highest status code treated as success
SUCCESS_THRESHOLD = 202

ModelT = TypeVar("ModelT", bound=BaseModel)


class TektonClient:
    """HTTP client for the Tekton API with authentication and error mapping."""

    def __init__(self, config: WatchConfig, transport: Optional[httpx.BaseTransport] = None):
        """Initialize HTTP client with configuration."""
        self.config = config
        self.namespace = config.namespace
        self.token = load_token(config)
        if self.token:
            logger.debug("Authenticating with token %s", redact_token(self.token))

        self.client = httpx.Client(
            timeout=config.request_timeout,
            verify=config.verify_tls,
            headers={"User-Agent": f"tekton-watch/{__version__}"},
            transport=transport,
        )

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with authentication."""
        headers = {}
        if self.token:
            headers[SSO_HEADER] = self.token
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _tekton_url(self, endpoint: str, resource: str, **query: str) -> str:
        url = f"{endpoint.rstrip('/')}/apis/{API_GROUP}/{API_VERSION}/namespaces/{self.namespace}/{resource}"
        if query:
            url += "?" + urlencode(query)
        return url

    def pipeline_runs_url(self, endpoint: str, trigger_id: str) -> str:
        return self._tekton_url(endpoint, "pipelineruns/", labelSelector=f"{TRIGGER_EVENT_LABEL}={trigger_id}")

    def task_runs_url(self, endpoint: str, run_name: str) -> str:
        return self._tekton_url(endpoint, "taskruns/", labelSelector=f"{PIPELINE_RUN_LABEL}={run_name}")

    def pod_log_url(self, endpoint: str, pod: str, container: str) -> str:
        return (
            f"{endpoint.rstrip('/')}/api/v1/namespaces/{self.namespace}/pods/{pod}/log?"
            + urlencode({"container": container})
        )

    def get(self, url: str) -> httpx.Response:
        """
        Make GET request.

        Raises:
            TransportError: If the request could not be completed
            HTTPError: If the status code is above the success threshold
        """
        try:
            response = self.client.get(url, headers=self._get_headers())
        except httpx.RequestError as e:
            raise TransportError(url, e) from e

        if response.status_code > SUCCESS_THRESHOLD:
            logger.debug("[%d] %s", response.status_code, response.text[:500])
            raise HTTPError(url, response.status_code, response.reason_phrase)

        return response

    def get_model(self, url: str, model: Type[ModelT]) -> ModelT:
        """Make GET request and decode the JSON body into model."""
        response = self.get(url)
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(url, e) from e

    def list_pipeline_runs(self, endpoint: str, trigger_id: str) -> PipelineRunList:
        """PipelineRuns labelled with the trigger event id."""
        return self.get_model(self.pipeline_runs_url(endpoint, trigger_id), PipelineRunList)

    def list_task_runs(self, endpoint: str, run_name: str) -> TaskRunList:
        """TaskRuns belonging to the named PipelineRun."""
        return self.get_model(self.task_runs_url(endpoint, run_name), TaskRunList)

    def pod_log(self, endpoint: str, pod: str, container: str) -> str:
        """Full current log of one container, from the start."""
        return self.get(self.pod_log_url(endpoint, pod, container)).text

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
