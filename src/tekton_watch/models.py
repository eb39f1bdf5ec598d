"""Pydantic models for the parts of the Tekton REST schema tekton-watch reads."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DiffMode(str, Enum):
    """How a freshly fetched log is compared with the previous fetch."""

    STRIP = "strip"  # remove every occurrence of the previous text
    SUFFIX = "suffix"  # keep what follows the previous text


class _KubeModel(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}


class ObjectMeta(_KubeModel):
    name: str = ""
    namespace: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    creation_timestamp: Optional[datetime] = Field(None, alias="creationTimestamp")


class Condition(_KubeModel):
    """Status condition (type Succeeded for runs)."""

    type: str = ""
    status: str = ""
    reason: Optional[str] = None
    message: Optional[str] = None
    last_transition_time: Optional[datetime] = Field(None, alias="lastTransitionTime")


class PipelineRunStatus(_KubeModel):
    start_time: Optional[datetime] = Field(None, alias="startTime")
    completion_time: Optional[datetime] = Field(None, alias="completionTime")
    conditions: List[Condition] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class PipelineRun(_KubeModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: PipelineRunStatus = Field(default_factory=PipelineRunStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def succeeded(self) -> Optional[Condition]:
        """The Succeeded condition, if the controller has set one."""
        for condition in self.status.conditions:
            if condition.type == "Succeeded":
                return condition
        return None


class PipelineRunList(_KubeModel):
    """Result of a PipelineRun label-selector query."""

    items: List[PipelineRun] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def is_complete(self) -> bool:
        """
        True when every run has a completion time.

        Vacuously true for an empty list; callers treat an empty list as
        "not found yet", never as complete.
        """
        return all(item.status.completion_time is not None for item in self.items)


class Terminated(_KubeModel):
    exit_code: int = Field(0, alias="exitCode")
    reason: Optional[str] = None
    started_at: Optional[datetime] = Field(None, alias="startedAt")
    finished_at: Optional[datetime] = Field(None, alias="finishedAt")


class Step(_KubeModel):
    """One step container of a TaskRun pod."""

    name: str = ""
    container: str = ""
    image_id: Optional[str] = Field(None, alias="imageID")
    terminated: Optional[Terminated] = None

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code once finished, None while still running."""
        if self.terminated is None:
            return None
        return self.terminated.exit_code


class TaskRunStatus(_KubeModel):
    pod_name: str = Field("", alias="podName")
    steps: List[Step] = Field(default_factory=list)
    start_time: Optional[datetime] = Field(None, alias="startTime")
    completion_time: Optional[datetime] = Field(None, alias="completionTime")
    conditions: List[Condition] = Field(default_factory=list)

    @field_validator("steps", "conditions", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class TaskRun(_KubeModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: TaskRunStatus = Field(default_factory=TaskRunStatus)


class PodSteps(BaseModel):
    """A TaskRun pod and its steps in execution order."""

    pod_name: str
    steps: List[Step] = Field(default_factory=list)

    def failed_step(self) -> Optional[Step]:
        """First step that terminated with a positive exit code."""
        for step in self.steps:
            code = step.exit_code
            if code is not None and code > 0:
                return step
        return None


class TaskRunList(_KubeModel):
    """Result of a TaskRun label-selector query."""

    items: List[TaskRun] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def pod_steps(self) -> List[PodSteps]:
        return [PodSteps(pod_name=item.status.pod_name, steps=item.status.steps) for item in self.items]

