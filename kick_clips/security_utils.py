from __future__ import annotations

SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-xsrf-token",
    "x-csrf-token",
    "proxy-authorization",
}


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    redacted: dict[str, str] = {}
    for k, v in headers.items():
        if k.lower() in SENSITIVE_HEADERS:
            redacted[k] = "***REDACTED***"
        else:
            redacted[k] = v
    return redacted


def serialize_cookies(cookies: list[dict[str, str]]) -> str:
    """Join page cookies into a single ``Cookie`` header value."""
    return "; ".join(f"{c['name']}={c['value']}" for c in cookies if c.get("name"))
