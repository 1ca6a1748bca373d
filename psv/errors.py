class PsvError(Exception):
    """Base class for every error raised by psv."""


class ConfigError(PsvError):
    """
    Fatal startup error: unreadable config, missing API key, no URLs resolved.

    hint is a human-readable remediation printed by the CLI before exiting.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class FetchError(PsvError):
    """A single PageSpeed request failed. Recovered per target by the run loops."""


class RemoteError(FetchError):
    """The API answered with an error payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(FetchError):
    """The response body is not the report shape we expect."""


class TransportError(FetchError):
    """The request never produced a response (connection error, timeout)."""
