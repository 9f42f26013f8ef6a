"""Error taxonomy shared across reportcast.

Errors raised inside a single firing are caught at the pipeline's job-body
boundary and never reach the scheduler.
"""


class ReportcastError(Exception):
    """Base class for reportcast errors."""


class ConfigurationError(ReportcastError):
    """A job definition or setting is invalid."""


class FetchError(ReportcastError):
    """The data source could not return report rows."""


class AuthError(FetchError):
    """An access token could not be acquired for the data source."""


class GatewayError(ReportcastError):
    """A single delivery attempt to the messaging gateway failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DeliveryFailed(ReportcastError):
    """Delivery failed after the retry budget was exhausted."""

    def __init__(self, last_error: Exception, attempts: int):
        super().__init__(f"Delivery failed after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts
