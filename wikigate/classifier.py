"""
Response classification for the MediaWiki Action API.

The API can answer HTTP 200 with an embedded error, so every response goes
through classify() on both the success and the failure path. Error payloads
come in two shapes (a single `error` object or an `errors` list) with the
message under `text`, `info` or `*` depending on errorformat/formatversion.
extract_errors() folds all of them into one list of ApiErrorDetail before
anything else looks at them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from wikigate.errors import (
    AssertUserFailedError,
    BadTokenError,
    MediaWikiApiError,
    RetryExhaustedError,
    TransportError,
)
from wikigate.response import ApiResponse
from wikigate.tokens import TokenKind

BAD_TOKEN_CODES = frozenset({"badtoken"})
BAD_TOKEN_LOGIN_RESULTS = frozenset({"NeedToken", "WrongToken"})
ASSERT_USER_CODES = frozenset({"assertuserfailed", "assertnameduserfailed"})


class ErrorKind(str, Enum):
    BAD_TOKEN = "badtoken"
    ASSERT_USER_FAILED = "assertuserfailed"
    BUSINESS = "business"
    TRANSPORT = "transport"
    RETRY_EXHAUSTED = "retryexhausted"


@dataclass(frozen=True)
class ApiErrorDetail:
    code: str
    text: str = ""
    module: Optional[str] = None
    docref: Optional[str] = None


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    code: str = ""
    message: str = ""
    errors: tuple = ()
    status: Optional[int] = None
    token_kind: Optional[str] = None


def _unwrap(payload: Any) -> tuple[Any, Optional[int]]:
    """Return (decoded body, HTTP status) from whatever the caller holds."""
    if isinstance(payload, MediaWikiApiError):
        return payload.data, None
    if isinstance(payload, TransportError):
        response = payload.response
        if isinstance(response, ApiResponse):
            return response.data, response.status
        return None, payload.status
    if isinstance(payload, ApiResponse):
        return payload.data, payload.status
    return payload, None


def _detail(raw: dict) -> ApiErrorDetail:
    text = raw.get("text") or raw.get("info") or raw.get("*") or ""
    return ApiErrorDetail(
        code=str(raw["code"]),
        text=str(text),
        module=raw.get("module"),
        docref=raw.get("docref"),
    )


def extract_errors(payload: Any) -> list[ApiErrorDetail]:
    """
    Collect API errors from a response body in one canonical shape.

    Args:
        payload: Decoded body dict, ApiResponse, or a wikigate exception

    Returns:
        List of ApiErrorDetail (empty when the body carries no error)
    """
    data, _ = _unwrap(payload)
    if not isinstance(data, dict):
        return []

    raw_errors = []
    if isinstance(data.get("error"), dict):
        raw_errors.append(data["error"])
    if isinstance(data.get("errors"), list):
        raw_errors.extend(data["errors"])

    return [_detail(raw) for raw in raw_errors if isinstance(raw, dict) and raw.get("code")]


def is_login_bad_token(data: Any) -> bool:
    if not isinstance(data, dict) or not isinstance(data.get("login"), dict):
        return False
    return data["login"].get("result") in BAD_TOKEN_LOGIN_RESULTS


def classify(payload: Any) -> Optional[ClassifiedError]:
    """
    Classify a response or error.

    Returns:
        ClassifiedError, or None when the payload is a success
    """
    if isinstance(payload, RetryExhaustedError):
        return exhaustion(payload.kind)

    data, status = _unwrap(payload)
    errors = tuple(extract_errors(data))
    codes = {e.code for e in errors}

    if codes & BAD_TOKEN_CODES or is_login_bad_token(data):
        return ClassifiedError(ErrorKind.BAD_TOKEN, "badtoken", _first_text(errors), errors, status)

    if codes & ASSERT_USER_CODES:
        code = next(e.code for e in errors if e.code in ASSERT_USER_CODES)
        return ClassifiedError(ErrorKind.ASSERT_USER_FAILED, code, _first_text(errors), errors, status)

    if errors:
        first = errors[0]
        return ClassifiedError(ErrorKind.BUSINESS, first.code, first.text, errors, status)

    if isinstance(payload, TransportError) or (status is not None and not 200 <= status < 300):
        message = str(payload) if isinstance(payload, TransportError) else f"HTTP {status}"
        return ClassifiedError(ErrorKind.TRANSPORT, "http", message, (), status)

    return None


def exhaustion(kind) -> ClassifiedError:
    """Classification for a token kind the server kept rejecting."""
    kind = TokenKind(kind)
    return ClassifiedError(
        ErrorKind.RETRY_EXHAUSTED,
        "retryexhausted",
        f"Retry attempts for acquiring/using the {kind} token exhausted",
        token_kind=kind.value,
    )


def _first_text(errors: tuple) -> str:
    return errors[0].text if errors else ""


def error_for(classification: ClassifiedError, payload: Any) -> Exception:
    """Build the exception matching a classification."""
    data, status = _unwrap(payload)
    errors = list(classification.errors)

    if classification.kind is ErrorKind.BAD_TOKEN:
        if not errors:
            # login NeedToken/WrongToken carries no error list
            errors = [ApiErrorDetail("badtoken", "Invalid token")]
        return BadTokenError(errors, data)
    if classification.kind is ErrorKind.ASSERT_USER_FAILED:
        return AssertUserFailedError(errors, data)
    if classification.kind is ErrorKind.BUSINESS:
        return MediaWikiApiError(errors, data)
    if classification.kind is ErrorKind.RETRY_EXHAUSTED:
        if isinstance(payload, RetryExhaustedError):
            return payload
        last_error = payload if isinstance(payload, Exception) else None
        return RetryExhaustedError(TokenKind(classification.token_kind), last_error)
    if isinstance(payload, TransportError):
        return payload
    return TransportError(classification.message, status=status, response=payload)
