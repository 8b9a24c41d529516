"""
Client configuration.

One typed config struct, resolved from either a ClientConfig, a plain
mapping, or the legacy positional form (base URL string plus optional
headers and default params).

Usage:
    from wikigate.config import resolve_config, load_config

    config = resolve_config("https://wiki.example.com/api.php")
    config = load_config("config.json")  # or $WIKIGATE_CONFIG
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional, Union

DEFAULT_PARAMS = {
    "action": "query",
    "errorformat": "plaintext",
    "format": "json",
    "formatversion": 2,
}

DEFAULT_USER_AGENT = "wikigate/1.0 (MediaWiki API client)"


@dataclass
class ClientConfig:
    """
    Settings for MediaWikiClient.

    Attributes:
        base_url: Action API endpoint (e.g., https://wiki.example.com/api.php)
        default_headers: Extra headers sent with every request
        default_params: Merged over DEFAULT_PARAMS; per-call values win
        throw_on_api_error: Raise MediaWikiApiError for bodies with error/errors
        user_agent: User-Agent header
        timeout: Request timeout in seconds
        delay: Seconds to wait before each request (be polite)
        max_retries: Attempts per request on network failure
        retry_delay: Seconds to wait between attempts
    """

    base_url: str
    default_headers: dict = field(default_factory=dict)
    default_params: dict = field(default_factory=dict)
    throw_on_api_error: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 30.0
    delay: float = 0.0
    max_retries: int = 1
    retry_delay: float = 5.0

    def __post_init__(self):
        self.default_params = {**DEFAULT_PARAMS, **(self.default_params or {})}
        self.default_headers = dict(self.default_headers or {})


ConfigLike = Union[ClientConfig, dict, str, None]


def resolve_config(
    config_or_base_url: ConfigLike = None,
    default_headers: Optional[dict] = None,
    default_params: Optional[dict] = None,
    **overrides: Any,
) -> ClientConfig:
    """
    Build a ClientConfig from any supported calling form.

    Args:
        config_or_base_url: ClientConfig, mapping of ClientConfig fields,
            or a base URL string (legacy positional form)
        default_headers: Legacy positional headers
        default_params: Legacy positional default params
        **overrides: Individual ClientConfig fields

    Raises:
        ValueError: If no base URL ends up configured, or a key is unknown
    """
    if isinstance(config_or_base_url, ClientConfig):
        values = {f.name: getattr(config_or_base_url, f.name) for f in fields(ClientConfig)}
    elif isinstance(config_or_base_url, dict):
        values = dict(config_or_base_url)
    elif isinstance(config_or_base_url, str):
        values = {"base_url": config_or_base_url}
    elif config_or_base_url is None:
        values = {}
    else:
        raise TypeError(f"Unsupported config type: {type(config_or_base_url).__name__}")

    if default_headers:
        values["default_headers"] = {**values.get("default_headers", {}), **default_headers}
    if default_params:
        values["default_params"] = {**values.get("default_params", {}), **default_params}
    values.update(overrides)

    known = {f.name for f in fields(ClientConfig)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown config option(s): {', '.join(sorted(unknown))}")

    if not isinstance(values.get("base_url"), str) or not values["base_url"]:
        raise ValueError("base_url is required")

    return ClientConfig(**values)


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> ClientConfig:
    """
    Load a ClientConfig from a JSON file.

    Expected shape:
        {
            "wiki": {"api_endpoint": "...", "throw_on_api_error": false},
            "http": {"user_agent": "...", "timeout_seconds": 30,
                     "delay_seconds": 0, "max_retries": 1,
                     "retry_delay_seconds": 5, "headers": {}},
            "default_params": {}
        }

    Args:
        path: Config file (default: $WIKIGATE_CONFIG, then ./config.json)
        **overrides: ClientConfig fields that win over the file
    """
    if path is None:
        path = os.environ.get("WIKIGATE_CONFIG", "config.json")

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    wiki = raw.get("wiki", {})
    http = raw.get("http", {})

    values: dict[str, Any] = {"base_url": wiki.get("api_endpoint")}
    if "throw_on_api_error" in wiki:
        values["throw_on_api_error"] = bool(wiki["throw_on_api_error"])
    if "headers" in http:
        values["default_headers"] = http["headers"]
    if "default_params" in raw:
        values["default_params"] = raw["default_params"]

    for key, field_name in (
        ("user_agent", "user_agent"),
        ("timeout_seconds", "timeout"),
        ("delay_seconds", "delay"),
        ("max_retries", "max_retries"),
        ("retry_delay_seconds", "retry_delay"),
    ):
        if key in http:
            values[field_name] = http[key]

    config = resolve_config(values)
    return replace(config, **overrides) if overrides else config
