"""
MediaWiki API client library.

Provides:
- MediaWikiClient: Action API client with token refresh and auto re-login
- RestClient: REST endpoint client with path templating
- resolve_config/load_config: Client configuration
- setup_logging: Logging configuration for console and file output
"""

from wikigate.classifier import ClassifiedError, ErrorKind, classify, extract_errors
from wikigate.client import LoginSession, MediaWikiClient
from wikigate.config import ClientConfig, load_config, resolve_config
from wikigate.errors import (
    AssertUserFailedError,
    BadTokenError,
    InvalidEndpointError,
    InvalidPathError,
    LoginFailedError,
    MediaWikiApiError,
    MissingTokenError,
    RetryExhaustedError,
    TransportError,
    WikiGateError,
)
from wikigate.logging_config import setup_logging
from wikigate.response import ApiResponse
from wikigate.rest import RestClient
from wikigate.tokens import TokenKind, TokenStore

__version__ = "1.0.0"

__all__ = [
    "MediaWikiClient",
    "LoginSession",
    "RestClient",
    "ApiResponse",
    "ClientConfig",
    "resolve_config",
    "load_config",
    "setup_logging",
    "TokenKind",
    "TokenStore",
    "ClassifiedError",
    "ErrorKind",
    "classify",
    "extract_errors",
    "WikiGateError",
    "TransportError",
    "MediaWikiApiError",
    "BadTokenError",
    "AssertUserFailedError",
    "RetryExhaustedError",
    "LoginFailedError",
    "MissingTokenError",
    "InvalidPathError",
    "InvalidEndpointError",
]
