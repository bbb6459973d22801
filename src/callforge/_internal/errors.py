"""Custom exception hierarchy for CallForge."""

from __future__ import annotations


class CallForgeError(Exception):
    """Base exception for all CallForge errors.

    All custom exceptions in CallForge inherit from this class, making it
    easy to catch any CallForge-specific error with a single except clause.
    """


class ConfigurationError(CallForgeError):
    """Raised when a descriptor or configuration cannot be executed as given.

    Examples:
        - The HTTP method is not one of the seven supported verbs.
        - A header is not in ``Key: Value`` form.
        - The endpoint is relative and no base URL was provided.
        - A completion condition names an unknown action.
        - An environment variable has an invalid value.
    """


class NetworkError(CallForgeError):
    """Raised when the transport fails before a response is received.

    Examples:
        - Connection refused or DNS resolution failure.
        - Connect or request timeout expired.
    """


class ResponseParseError(CallForgeError):
    """Raised when a response body must be JSON but is not."""


class ScenarioError(CallForgeError):
    """Raised when a scenario cannot proceed.

    Examples:
        - An extraction path resolves to nothing in the step response.
        - A scenario step returned a non-2xx status.
    """


class ScenarioDefinitionError(ConfigurationError, ScenarioError):
    """Raised when a scenario's shape is invalid.

    Examples:
        - ``job_with_polling`` does not have exactly two steps.
        - Steps are not named ``schedule_job`` then ``poll_job``.
        - The polling step has no polling policy.
    """


class HttpStatusError(ScenarioError):
    """Raised when a scenario step receives a non-2xx response.

    Attributes:
        status: HTTP status code of the response.
        body: Response body text.
    """

    def __init__(self, status: int, body: str) -> None:
        """Initialize the error.

        Args:
            status: HTTP status code of the response.
            body: Response body text.
        """
        super().__init__(f"HTTP request failed with status {status}: {body}")
        self.status = status
        self.body = body


class PollingTimeoutError(ScenarioError):
    """Raised when a polling step exceeds its ``timeout_seconds`` deadline."""
