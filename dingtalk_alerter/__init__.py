"""DingTalk robot alerts for failed workflow executions."""

from .alerter import Alerter, DingtalkRobot, FailureReport  # re-export
from .message import AlertMessage
from .sender import DeliveryResult, send

__all__ = ["Alerter", "AlertMessage", "DeliveryResult", "DingtalkRobot", "FailureReport", "send"]
