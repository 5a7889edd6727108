"""Prefect state-change hooks that report failed flow runs to DingTalk.

Attach to a flow with ``@flow(on_failure=[dingtalk_on_failure], on_crashed=[dingtalk_on_failure])``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional

from prefect.client.orchestration import get_client
from prefect.client.schemas.filters import FlowRunFilter, FlowRunFilterId

from dingtalk_alerter.alerter import DingtalkRobot
from dingtalk_alerter.config import Settings, get_settings
from dingtalk_alerter.execution import ExecutableFlow, ExecutableNode, Status
from dingtalk_alerter.logging_config import configure_logging

logger = configure_logging().getChild("prefect_hooks")

PROJECT_TAG_PREFIX = "project:"

STATE_TYPE_TO_STATUS = {
    "SCHEDULED": Status.QUEUED,
    "PENDING": Status.PREPARING,
    "RUNNING": Status.RUNNING,
    "PAUSED": Status.PAUSED,
    "COMPLETED": Status.SUCCEEDED,
    "FAILED": Status.FAILED,
    "CRASHED": Status.FAILED,
    "CANCELLING": Status.KILLING,
    "CANCELLED": Status.CANCELLED,
}


def _to_millis(moment: Optional[datetime]) -> int:
    if moment is None:
        return -1
    return int(moment.timestamp() * 1000)


def _state_type_name(state: Any) -> str:
    state_type = getattr(state, "type", None)
    return str(getattr(state_type, "value", state_type or "")).upper()


def status_from_state(state: Any) -> Status:
    return STATE_TYPE_TO_STATUS.get(_state_type_name(state), Status.READY)


def project_from_tags(tags: Optional[Iterable[str]], default: str) -> str:
    for tag in tags or ():
        if tag.startswith(PROJECT_TAG_PREFIX) and len(tag) > len(PROJECT_TAG_PREFIX):
            return tag[len(PROJECT_TAG_PREFIX):]
    return default


def _read_task_runs(flow_run_id: Any) -> List[Any]:
    with get_client(sync_client=True) as client:
        return client.read_task_runs(
            flow_run_filter=FlowRunFilter(id=FlowRunFilterId(any_=[flow_run_id]))
        )


def _task_run_sort_key(task_run: Any) -> float:
    started = getattr(task_run, "start_time", None) or getattr(task_run, "expected_start_time", None)
    return started.timestamp() if started else float("inf")


def nodes_from_task_runs(task_runs: Iterable[Any]) -> List[ExecutableNode]:
    ordered = sorted(task_runs, key=_task_run_sort_key)
    return [
        ExecutableNode(id=task_run.name, status=status_from_state(task_run.state))
        for task_run in ordered
        if task_run.state is not None
    ]


def executable_flow_from_run(
    flow: Any, flow_run: Any, state: Any, settings: Settings, task_runs: Iterable[Any] = ()
) -> ExecutableFlow:
    end_time = getattr(flow_run, "end_time", None) or getattr(state, "timestamp", None)
    return ExecutableFlow(
        flow_id=flow.name,
        execution_id=str(flow_run.id),
        project_name=project_from_tags(getattr(flow_run, "tags", None), settings.default_project),
        start_time=_to_millis(getattr(flow_run, "start_time", None)),
        end_time=_to_millis(end_time),
        status=status_from_state(state),
        nodes=nodes_from_task_runs(task_runs),
    )


def dingtalk_on_failure(flow: Any, flow_run: Any, state: Any) -> None:
    """Prefect ``on_failure``/``on_crashed`` hook."""
    settings = get_settings()
    if not settings.enabled:
        return

    try:
        task_runs = _read_task_runs(flow_run.id)
    except Exception:
        logger.exception("Could not read task runs for flow run %s", flow_run.id)
        task_runs = []

    executable = executable_flow_from_run(flow, flow_run, state, settings, task_runs)
    extra_reasons = [state.message] if getattr(state, "message", None) else []
    DingtalkRobot(settings).alert_on_error(executable, *extra_reasons)
