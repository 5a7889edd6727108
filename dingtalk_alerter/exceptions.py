"""Alerter exceptions."""


class AlertError(Exception):
    """Base class for errors raised while preparing an alert."""


class SigningError(AlertError):
    """Raised when the webhook request signature cannot be computed."""
