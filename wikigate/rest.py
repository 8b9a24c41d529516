"""
Client for the MediaWiki REST endpoint (rest.php).

Separate from MediaWikiClient: REST calls share no parameter or token
semantics with the Action API, only the transport.

Usage:
    from wikigate.rest import RestClient

    rest = RestClient("https://wiki.example.com/w/rest.php")
    page = rest.get("/v1/page/{title}", path_params={"title": "Main Page"})
"""

import logging
import re
from typing import Any, Optional
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

import requests

from wikigate.config import DEFAULT_USER_AGENT
from wikigate.errors import InvalidEndpointError, InvalidPathError, TransportError
from wikigate.response import ApiResponse

PLACEHOLDER = re.compile(r"\{[^{}]+\}")
ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def normalize_rest_base_url(base_url: Optional[str]) -> str:
    """Strip query/fragment and make sure the base URL ends with '/'."""
    if not base_url or not ABSOLUTE_URL.match(base_url):
        raise InvalidEndpointError(base_url)
    parts = urlsplit(base_url)
    stripped = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return stripped if stripped.endswith("/") else stripped + "/"


def resolve_path(path: str, path_params: Optional[dict] = None) -> str:
    """
    Substitute {name} placeholders with percent-encoded values.

    /v1/page/{title} + {"title": "Main Page"} -> /v1/page/Main%20Page

    Raises:
        InvalidPathError: If any placeholder is left unresolved
    """
    for key, value in (path_params or {}).items():
        path = path.replace(f"{{{key}}}", quote(str(value), safe=""))
    if PLACEHOLDER.search(path):
        raise InvalidPathError(path)
    return path


class RestClient:
    """MediaWiki REST API client."""

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[dict] = None,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = normalize_rest_base_url(base_url)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent or DEFAULT_USER_AGENT})
        self.session.headers.update(default_headers or {})

    def build_url(self, path: str) -> str:
        if ABSOLUTE_URL.match(path):
            return path
        # a leading "/" would drop rest.php/ from the base when joining
        return urljoin(self.base_url, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        path_params: Optional[dict] = None,
        params: Optional[dict] = None,
        json: Any = None,
        data: Any = None,
        headers: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """
        Send a request to a REST route.

        Args:
            method: HTTP method
            path: Route, relative to the base URL, with {placeholders}
            path_params: Values for the placeholders
            params: Query string
            json: JSON body
            data: Form or raw body
            headers: Extra headers for this call

        Raises:
            InvalidPathError: If a placeholder is left unresolved
            TransportError: On network failure or a non-2xx status
        """
        url = self.build_url(resolve_path(path, path_params))
        try:
            raw = self.session.request(
                method.upper(),
                url,
                params=params,
                json=json,
                data=data,
                headers=headers,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            self.logger.error(f"REST {method.upper()} {url} failed: {e}")
            raise TransportError(f"HTTP request failed: {e}") from e

        response = ApiResponse.from_requests(raw, method.upper())
        if not response.ok:
            raise TransportError(
                f"REST {method.upper()} {url} returned HTTP {response.status}",
                status=response.status,
                response=response,
            )
        return response

    def get(self, path: str, **options: Any) -> ApiResponse:
        return self.request("GET", path, **options)

    def delete(self, path: str, **options: Any) -> ApiResponse:
        return self.request("DELETE", path, **options)

    def post(self, path: str, json: Any = None, **options: Any) -> ApiResponse:
        return self.request("POST", path, json=json, **options)

    def put(self, path: str, json: Any = None, **options: Any) -> ApiResponse:
        return self.request("PUT", path, json=json, **options)

    def patch(self, path: str, json: Any = None, **options: Any) -> ApiResponse:
        return self.request("PATCH", path, json=json, **options)
