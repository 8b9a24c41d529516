"""
Exception hierarchy for the wikigate client.

Two families:
- WikiGateError subclasses raised by the client itself (transport failures,
  exhausted retries, failed logins, bad REST paths)
- MediaWikiApiError for errors the wiki reported in its response body
"""

from typing import Any, Optional


class WikiGateError(Exception):
    """Base class for every error raised by wikigate."""


class TransportError(WikiGateError):
    """The request failed below the API layer (network, non-2xx, bad body)."""

    def __init__(self, message: str, status: Optional[int] = None, response: Any = None):
        super().__init__(message or "Transport error")
        self.status = status
        self.response = response


class MediaWikiApiError(WikiGateError):
    """
    The wiki answered with an `error` object or `errors` list.

    Args:
        errors: Normalized error details (see classifier.extract_errors)
        data: Raw decoded response body, kept for callers that need it
    """

    def __init__(self, errors: list, data: Any = None):
        self.errors = list(errors)
        self.data = data
        text = "\n".join(e.text for e in self.errors if e.text)
        super().__init__(text or self.code)

    @property
    def code(self) -> str:
        if self.errors:
            return self.errors[0].code
        return "unknown"

    @property
    def first_error(self):
        return self.errors[0] if self.errors else None

    def __str__(self) -> str:
        return f"[{self.code}] {self.args[0]}"


class BadTokenError(MediaWikiApiError):
    """The token sent with the request was stale or missing."""

    @property
    def code(self) -> str:
        return "badtoken"


class AssertUserFailedError(MediaWikiApiError):
    """The session is no longer logged in as the asserted user."""


class RetryExhaustedError(WikiGateError):
    """The server kept rejecting freshly fetched tokens of one kind."""

    def __init__(self, kind, last_error: Optional[Exception] = None):
        self.kind = kind
        self.last_error = last_error
        super().__init__(
            f"Retry attempts for acquiring/using the {kind} token exhausted"
        )


class LoginFailedError(WikiGateError):
    """Login returned anything other than Success."""

    def __init__(self, reason: str, result: Optional[str] = None, data: Any = None):
        self.reason = reason or result or "Login failed with unknown reason"
        self.result = result
        self.data = data
        super().__init__(self.reason)


class MissingTokenError(WikiGateError):
    """A token query succeeded but did not return the requested kind."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Server did not return a {kind} token")


class InvalidPathError(WikiGateError):
    """A REST path still contains unresolved {placeholders}."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f'The REST path "{path}" is invalid, some parameters are not provided'
        )


class InvalidEndpointError(WikiGateError):
    """A REST base URL is missing or not an absolute http(s) URL."""

    def __init__(self, url: Optional[str]):
        self.url = url
        super().__init__(
            f'Invalid REST baseURL "{url}". Pass an absolute URL like '
            '"https://example.org/w/rest.php/".'
        )
