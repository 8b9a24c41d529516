"""
Parameter normalization for the MediaWiki wire format.

- lists and tuples join with "|"
- True becomes "1"; False and None drop the parameter
- numbers become strings
- bytes and file-like objects pass through so they can go multipart
"""

from typing import Any, Optional


def is_file_like(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray)) or hasattr(value, "read")


def normalize_param_value(value: Any) -> Any:
    """
    Convert one parameter value to what the API expects.

    Returns None when the parameter should be omitted.
    """
    if isinstance(value, (list, tuple)):
        return "|".join(str(item) for item in value)
    if value is None or isinstance(value, bool):
        return "1" if value else None
    if isinstance(value, (int, float)):
        return str(value)
    return value


def normalize_params(params: Optional[dict]) -> dict:
    """Normalize every value in a mapping, dropping omitted parameters."""
    if not params:
        return {}
    normalized = {}
    for key, value in params.items():
        data = normalize_param_value(value)
        if data is not None:
            normalized[key] = data
    return normalized


def split_files(body: dict) -> tuple[dict, dict]:
    """
    Split a normalized body into form fields and multipart file parts.

    Returns:
        (data, files) suitable for requests' `data=` and `files=` arguments
    """
    data = {}
    files = {}
    for key, value in body.items():
        if is_file_like(value):
            files[key] = value
        else:
            data[key] = value
    return data, files
