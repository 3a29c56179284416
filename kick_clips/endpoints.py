"""Known private API endpoints and their accepted query values."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .exceptions import ValidationError

API_ENDPOINTS: dict[str, dict] = {
    "clips": {
        "path": "/api/v2/clips",
        "params": {
            "sort": ("view", "recent", "trending"),
            "time": ("day", "week", "month", "all"),
        },
    },
}

CURSOR_PARAM = "cursor"


def validate_params(endpoint: str, params: dict[str, str]) -> None:
    definition = API_ENDPOINTS.get(endpoint)
    if definition is None:
        raise ValidationError(f"Unknown endpoint '{endpoint}'")
    for key, allowed in definition["params"].items():
        value = params.get(key)
        if value is None:
            raise ValidationError(f"Missing '{key}' parameter for {endpoint}")
        if value not in allowed:
            raise ValidationError(
                f"Invalid {key} '{value}' for {endpoint}. Expected one of: {', '.join(allowed)}"
            )


def with_query_params(url: str, overrides: dict[str, str | None]) -> str:
    """Return *url* with *overrides* merged into its query string.

    Existing keys keep their position, new keys are appended, and a value of
    ``None`` removes the key entirely.
    """
    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    merged: list[tuple[str, str]] = []
    applied: set[str] = set()
    for key, value in pairs:
        if key in overrides:
            if key in applied:
                continue
            applied.add(key)
            replacement = overrides[key]
            if replacement is not None:
                merged.append((key, replacement))
            continue
        merged.append((key, value))
    for key, value in overrides.items():
        if key not in applied and value is not None:
            merged.append((key, value))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(merged), parts.fragment))
