"""Execution-state model handed to alerters by the workflow engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union


class Status(str, Enum):
    READY = "READY"
    DISPATCHING = "DISPATCHING"
    PREPARING = "PREPARING"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    SUCCEEDED = "SUCCEEDED"
    KILLING = "KILLING"
    KILLED = "KILLED"
    FAILED = "FAILED"
    FAILED_FINISHING = "FAILED_FINISHING"
    SKIPPED = "SKIPPED"
    DISABLED = "DISABLED"
    QUEUED = "QUEUED"
    FAILED_SUCCEEDED = "FAILED_SUCCEEDED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExecutableNode:
    id: str
    status: Status


@dataclass(frozen=True)
class ExecutableFlow:
    """One execution of a flow. Times are epoch milliseconds, ``-1`` when unknown."""

    flow_id: str
    execution_id: Union[int, str]
    project_name: str
    start_time: int = -1
    end_time: int = -1
    status: Status = Status.FAILED
    nodes: List[ExecutableNode] = field(default_factory=list)


def find_failed_jobs(flow: ExecutableFlow) -> List[str]:
    return [node.id for node in flow.nodes if node.status == Status.FAILED]
