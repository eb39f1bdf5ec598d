import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tekton_watch.config import WatchConfig
from tekton_watch.http import TRIGGER_EVENT_LABEL, TektonClient

ENV_VARS = [
    "EVENT_ID",
    "LOG_LEVEL",
    "TEKTON_API",
    "TEKTON_NAMESPACE",
    "TEKTON_EVENT_ID",
    "TEKTON_JWT",
    "TEKTON_TOKEN_FILE",
    "TEKTON_LOG_LEVEL",
    "TEKTON_MAX_RETRIES",
    "TEKTON_RETRY_INTERVAL",
    "TEKTON_POLL_INTERVAL",
    "TEKTON_REQUEST_TIMEOUT",
    "TEKTON_MAX_DURATION",
    "TEKTON_VERIFY_TLS",
    "TEKTON_LOG_DIFF_MODE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def pipeline_run(name: str, completed: bool = False, reason: str = "Succeeded") -> Dict[str, Any]:
    status: Dict[str, Any] = {
        "startTime": "2024-05-01T10:00:00Z",
        "conditions": [{"type": "Succeeded", "status": "Unknown", "reason": "Running"}],
    }
    if completed:
        status["completionTime"] = "2024-05-01T10:05:00Z"
        status["conditions"] = [
            {
                "type": "Succeeded",
                "status": "False" if reason == "Failed" else "True",
                "reason": reason,
                "message": "Tasks Completed: 2",
            }
        ]
    return {"metadata": {"name": name, "labels": {TRIGGER_EVENT_LABEL: "evt-1"}}, "status": status}


def task_run(name: str, pod: str, steps: List[Tuple[str, Optional[int]]]) -> Dict[str, Any]:
    """Build a TaskRun; a step exit code of None means still running."""
    step_status = []
    for container, exit_code in steps:
        step: Dict[str, Any] = {"name": container.replace("step-", ""), "container": container}
        if exit_code is None:
            step["running"] = {"startedAt": "2024-05-01T10:01:00Z"}
        else:
            step["terminated"] = {"exitCode": exit_code, "reason": "Completed" if exit_code == 0 else "Error"}
        step_status.append(step)
    return {"metadata": {"name": name}, "status": {"podName": pod, "steps": step_status}}


def _next(sequence: list) -> Any:
    """Pop responses in order, repeating the last one forever."""
    if len(sequence) > 1:
        return sequence.pop(0)
    return sequence[0]


class FakeTekton:
    """In-memory Tekton API served through httpx.MockTransport."""

    def __init__(self):
        self.runs: Dict[str, list] = {}
        self.task_runs: Dict[str, list] = {}
        self.logs: Dict[Tuple[str, str], list] = {}
        self.down: set = set()
        self.requests: List[httpx.Request] = []

    def set_runs(self, host: str, *responses: list) -> None:
        """Successive PipelineRun item lists (or status codes) returned by host."""
        self.runs[host] = list(responses)

    def set_task_runs(self, run_name: str, *responses: list) -> None:
        self.task_runs[run_name] = list(responses)

    def set_logs(self, pod: str, container: str, *texts) -> None:
        """Successive log bodies (or status codes) for one container."""
        self.logs[(pod, container)] = list(texts)

    def paths(self, suffix: str = "") -> List[str]:
        return [r.url.path for r in self.requests if r.url.path.endswith(suffix)]

    def hosts(self, suffix: str = "/pipelineruns/") -> List[str]:
        return [r.url.host for r in self.requests if r.url.path.endswith(suffix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host in self.down:
            raise httpx.ConnectError("connection refused", request=request)

        if path.endswith("/pipelineruns/"):
            items = _next(self.runs.get(request.url.host, [[]]))
            if isinstance(items, int):
                return httpx.Response(items, text="unavailable")
            return httpx.Response(200, json={"apiVersion": "tekton.dev/v1beta1", "items": items})

        if path.endswith("/taskruns/"):
            run_name = request.url.params["labelSelector"].split("=", 1)[1]
            items = _next(self.task_runs.get(run_name, [[]]))
            if isinstance(items, int):
                return httpx.Response(items, text="unavailable")
            return httpx.Response(200, json={"items": items})

        if path.endswith("/log"):
            pod = path.split("/")[-2]
            container = request.url.params["container"]
            body = _next(self.logs[(pod, container)])
            if isinstance(body, int):
                return httpx.Response(body, text="pod not found")
            return httpx.Response(200, text=body)

        return httpx.Response(404, text="not found")

    def client(self, config: WatchConfig) -> TektonClient:
        return TektonClient(config, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_tekton():
    return FakeTekton()


@pytest.fixture
def config():
    return WatchConfig(api="http://tekton-a:9097", namespace="ci", retry_interval=0, poll_interval=0)
