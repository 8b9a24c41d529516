"""
HTTP gateway for the MediaWiki Action API.

Issues GET/POST through a requests.Session, merges the configured default
parameters into every call, and turns transport failures into
TransportError so nothing leaves this module as a raw requests exception.
"""

import logging
import time
from typing import Optional

import requests

from wikigate.classifier import classify, error_for, extract_errors
from wikigate.config import ClientConfig
from wikigate.errors import TransportError
from wikigate.params import normalize_params, split_files
from wikigate.response import ApiResponse


class RequestGateway:
    """Action API transport with polite delays and transport retries."""

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        })
        self.session.headers.update(config.default_headers)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def set_base_url(self, base_url: str) -> None:
        self.config.base_url = base_url

    def get(
        self,
        params: dict,
        headers: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """
        GET with default params merged under the per-call params.

        Args:
            params: API parameters for this call
            headers: Extra headers for this call only
            timeout: Override the configured timeout
        """
        query = normalize_params({**self.config.default_params, **params})
        return self._send("GET", query, None, headers, timeout)

    def post(
        self,
        body: dict,
        headers: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """
        POST a form body; default params travel in the query string.

        Keys present in the body are dropped from the query so the body wins.
        `origin` always moves to the query string (CORS requires it there).
        """
        body = normalize_params(body)
        query = normalize_params(self.config.default_params)
        for key in body:
            query.pop(key, None)
        if "origin" in body:
            query["origin"] = body.pop("origin")
        return self._send("POST", query, body, headers, timeout)

    def _send(
        self,
        method: str,
        query: dict,
        body: Optional[dict],
        headers: Optional[dict],
        timeout: Optional[float],
    ) -> ApiResponse:
        description = f"{method} action={(body or {}).get('action') or query.get('action')}"
        kwargs = {
            "params": query,
            "headers": headers,
            "timeout": timeout or self.config.timeout,
        }
        if body is not None:
            data, files = split_files(body)
            kwargs["data"] = data
            if files:
                kwargs["files"] = files

        attempts = max(1, self.config.max_retries)
        last_error: Optional[requests.RequestException] = None
        for attempt in range(attempts):
            try:
                if self.config.delay:
                    time.sleep(self.config.delay)  # Rate limiting
                if method == "GET":
                    raw = self.session.get(self.config.base_url, **kwargs)
                else:
                    raw = self.session.post(self.config.base_url, **kwargs)
                break
            except requests.RequestException as e:
                last_error = e
                self.logger.warning(
                    f"Attempt {attempt + 1}/{attempts} failed for {description}: {e}"
                )
                if attempt < attempts - 1:
                    time.sleep(self.config.retry_delay)
        else:
            self.logger.error(f"FAILED after {attempts} attempts: {description}")
            raise TransportError(f"HTTP request failed: {last_error}") from last_error

        response = ApiResponse.from_requests(raw, method)
        return self._check(response)

    def _check(self, response: ApiResponse) -> ApiResponse:
        has_api_error = bool(extract_errors(response))

        if not response.ok and not has_api_error:
            raise TransportError(
                f"HTTP {response.status} without a MediaWiki API error body",
                status=response.status,
                response=response,
            )

        if has_api_error and self.config.throw_on_api_error:
            raise error_for(classify(response), response)

        return response
