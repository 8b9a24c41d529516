"""Decoded HTTP response shared by the Action API and REST clients."""

from dataclasses import dataclass, field
from typing import Any, Optional

import requests


@dataclass
class ApiResponse:
    status: int
    data: Any
    headers: dict = field(default_factory=dict)
    url: str = ""
    method: str = "GET"

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @classmethod
    def from_requests(cls, response: requests.Response, method: Optional[str] = None) -> "ApiResponse":
        """Decode JSON when the server says it is JSON, keep text otherwise."""
        content_type = response.headers.get("Content-Type", "")
        data: Optional[Any]
        if "json" in content_type:
            try:
                data = response.json()
            except ValueError:
                data = response.text
        else:
            data = response.text
        return cls(
            status=response.status_code,
            data=data,
            headers=dict(response.headers),
            url=response.url,
            method=method or getattr(response.request, "method", None) or "GET",
        )
