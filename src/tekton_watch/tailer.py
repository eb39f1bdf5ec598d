"""
Incremental container log tailing.

The pod log API only returns the whole log from the start, so every poll
re-fetches it and only the part not shown before is emitted.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from .http import TektonClient
from .models import DiffMode, PipelineRunList, PodSteps

logger = logging.getLogger(__name__)

LogSink = Callable[[str], None]


def diff_logs(previous: str, current: str, mode: DiffMode = DiffMode.STRIP) -> str:
    """
    Return the part of current that was not already in previous.

    STRIP removes every occurrence of previous from current, so repeated
    content may be suppressed. SUFFIX returns what follows previous, or all
    of current if the log no longer starts with previous.
    """
    if not previous:
        return current
    if mode is DiffMode.SUFFIX:
        if current.startswith(previous):
            return current[len(previous):]
        return current
    return current.replace(previous, "")


@dataclass
class ContainerLogState:
    """Log text seen so far for one (pod, container) pair."""

    pod_name: str
    container_name: str
    logs: str = ""
    tail: str = ""

    def append(self, text: str, mode: DiffMode = DiffMode.STRIP) -> str:
        self.tail = diff_logs(self.logs, text, mode)
        self.logs = text
        return self.tail


class LogTailer:
    """Fetches step logs each poll and emits only new output."""

    def __init__(self, client: TektonClient, sink: LogSink, diff_mode: DiffMode = DiffMode.STRIP):
        self.client = client
        self.sink = sink
        self.diff_mode = diff_mode
        self.states: Dict[Tuple[str, str], ContainerLogState] = {}

    def pod_steps(self, endpoint: str, runs: PipelineRunList) -> List[PodSteps]:
        """TaskRun pods and steps of every run, in discovery order."""
        result: List[PodSteps] = []
        for run in runs.items:
            task_runs = self.client.list_task_runs(endpoint, run.name)
            result.extend(task_runs.pod_steps())
        return result

    def observe(self, pod_name: str, container: str, text: str) -> str:
        """Record a fetched log and return its new tail."""
        key = (pod_name, container)
        state = self.states.get(key)
        if state is None:
            state = ContainerLogState(pod_name=pod_name, container_name=container)
            self.states[key] = state
        return state.append(text, self.diff_mode)

    def tail(self, endpoint: str, runs: PipelineRunList) -> List[PodSteps]:
        """
        Run one poll cycle over every step container of the run.

        Returns:
            The pod steps seen in this cycle

        Raises:
            TransportError, HTTPError, DecodeError: The first failed fetch;
                containers after it are not visited this cycle
        """
        pod_steps = self.pod_steps(endpoint, runs)

        for ps in pod_steps:
            if not ps.pod_name:
                # TaskRun not scheduled onto a pod yet
                continue
            for step in ps.steps:
                if not step.container:
                    continue
                text = self.client.pod_log(endpoint, ps.pod_name, step.container)
                tail = self.observe(ps.pod_name, step.container, text)
                if tail.strip():
                    self.sink(tail)

        return pod_steps
