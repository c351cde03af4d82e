"""Error types for gptcli."""


class GptCliError(Exception):
    """Base class for gptcli errors."""


class ConfigError(GptCliError):
    """Configuration file is missing required fields or is malformed."""


class SpinnerCatalogError(GptCliError):
    """Spinner catalog is empty or holds a spinner that cannot be animated."""


class CompletionError(GptCliError):
    """Completion request failed or returned an unusable response.

    Args:
        message: Human-readable description of the failure.
        status_code: HTTP status returned by the API, if one was received.

    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AnimationFault(GptCliError):
    """An animation activity stopped for a reason other than cancellation."""
