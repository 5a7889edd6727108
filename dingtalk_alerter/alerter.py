"""Alerter hooks invoked by the workflow engine, and the DingTalk robot implementation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from dingtalk_alerter.config import Settings, get_settings
from dingtalk_alerter.execution import ExecutableFlow, Status, find_failed_jobs
from dingtalk_alerter.logging_config import configure_logging
from dingtalk_alerter.message import AlertMessage
from dingtalk_alerter.sender import DeliveryResult, send
from dingtalk_alerter.timeutils import format_date_time_zone, format_duration

logger = configure_logging().getChild("alerter")


class Alerter:
    """Notification hooks. Every hook is a no-op unless a subclass overrides it."""

    def alert_on_success(self, flow: ExecutableFlow) -> Any:
        return None

    def alert_on_error(self, flow: ExecutableFlow, *extra_reasons: str) -> Any:
        return None

    def alert_on_first_error(self, flow: ExecutableFlow) -> Any:
        return None

    def alert_on_sla(self, sla_option: Any, sla_message: str) -> Any:
        return None

    def alert_on_failed_update(
        self, executor: Any, executions: Sequence[ExecutableFlow], error: Exception
    ) -> Any:
        return None

    def alert_on_failed_executor_health_check(
        self,
        executor: Any,
        executions: Sequence[ExecutableFlow],
        error: Exception,
        alert_emails: Sequence[str],
    ) -> Any:
        return None


@dataclass(frozen=True)
class FailureReport:
    flow_id: str
    execution_id: Union[int, str]
    project_name: str
    start_time: int
    end_time: int
    status: Status
    failed_jobs: Tuple[str, ...]
    extra_reasons: Tuple[str, ...]

    @classmethod
    def from_flow(cls, flow: ExecutableFlow, extra_reasons: Sequence[str] = ()) -> "FailureReport":
        return cls(
            flow_id=flow.flow_id,
            execution_id=flow.execution_id,
            project_name=flow.project_name,
            start_time=flow.start_time,
            end_time=flow.end_time,
            status=flow.status,
            failed_jobs=tuple(find_failed_jobs(flow)),
            extra_reasons=tuple(extra_reasons),
        )


class DingtalkRobot(Alerter):
    """Posts a markdown failure report to a DingTalk group robot."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def execution_url(self, execution_id: Union[int, str]) -> str:
        s = self.settings
        return f"{s.scheme}://{s.hostname}:{s.client_port}/executor?execid={execution_id}"

    def build_error_message(self, report: FailureReport) -> AlertMessage:
        name = self.settings.display_name
        tz = self.settings.timezone
        execution_url = self.execution_url(report.execution_id)

        title = f"Flow {report.flow_id} has encountered a failure on {name}"
        header = (
            f"# Execution {report.execution_id} of flow {report.flow_id} of project "
            f"{report.project_name} has encountered a failure on {name} \n"
        )
        reasons: List[str] = [
            f"- [Failed job '{job_id}' Link]({execution_url}&job={job_id}) \n"
            for job_id in report.failed_jobs
        ]
        reasons.extend(f"- {reason}\n" for reason in report.extra_reasons)

        return AlertMessage.build(
            title,
            header,
            f"- Start Time: {format_date_time_zone(report.start_time, tz)} \n",
            f"- End Time: {format_date_time_zone(report.end_time, tz)} \n",
            f"- Duration: {format_duration(report.start_time, report.end_time)}\n",
            f"- Status: {report.status} \n",
            f"- [Execution Link]({execution_url}) \n",
            "## Reason \n",
            "".join(reasons),
        )

    def alert_on_error(self, flow: ExecutableFlow, *extra_reasons: str) -> Optional[DeliveryResult]:
        if not self.settings.enabled:
            logger.debug("DingTalk token not configured; not alerting on %s", flow.flow_id)
            return None

        report = FailureReport.from_flow(flow, extra_reasons)
        message = self.build_error_message(report)
        result = send(self.settings, message.serialize())
        if not result.ok:
            logger.warning(
                "Failure alert for execution %s of flow %s was not delivered: %s",
                report.execution_id,
                report.flow_id,
                result.error or result.response_text,
            )
        return result
