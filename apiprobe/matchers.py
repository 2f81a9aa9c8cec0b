"""
Fingerprint matching over response text.

All matching is case-insensitive substring search.  Pattern lists are
evaluated in order and the first hit wins, so the same input always
reports the same pattern.
"""

from typing import Iterable, Mapping, Optional

# Headers that leak server / framework / version details
SENSITIVE_HEADERS = (
    "server",
    "x-powered-by",
    "x-aspnet-version",
    "x-aspnetmvc-version",
    "x-runtime",
    "x-version",
    "x-generator",
    "x-drupal-cache",
    "x-drupal-dynamic-cache",
    "x-wordpress-cache",
)

# Stack traces and verbose error output
ERROR_FINGERPRINTS = (
    "stack trace",
    "exception",
    "traceback",
    "at line",
    "syntax error",
    "unexpected token",
    "undefined variable",
    "cannot read property",
    "null reference",
    "file path",
    "directory path",
    "database error",
)

# SQL engine errors leaking into a response
SQL_ERROR_FINGERPRINTS = (
    "sql syntax",
    "sql error",
    "syntax error",
    "mysql",
    "postgresql",
    "sqlite",
    "oracle",
    "odbc",
    "sqlstate",
    "database error",
)

# Sensitive terms in any response body (information disclosure)
SENSITIVE_TERMS = (
    "password",
    "secret",
    "token",
    "key",
    "private",
    "credential",
    "api_key",
    "apikey",
    "auth",
    "jwt",
    "ssh",
    "ssl",
    "cert",
)

# Data that should sit behind authentication
PROTECTED_DATA_TERMS = (
    "user",
    "password",
    "email",
    "phone",
    "address",
    "credit",
    "payment",
    "token",
    "key",
    "secret",
    "private",
)

# Rows an injected query should not have returned
SUSPICIOUS_SQL_TERMS = ("admin", "password", "username")

# Endpoint path markers
LOGIN_PATH_MARKERS = ("login", "auth", "signin")
PUBLIC_PATH_MARKERS = ("login", "register", "public")


def contains_any(haystack: str, patterns: Iterable[str]) -> Optional[str]:
    """Return the first pattern found in *haystack*, or None."""
    text = (haystack or "").casefold()
    for pattern in patterns:
        if pattern.casefold() in text:
            return pattern
    return None


def present_headers(headers: Mapping[str, str], names: Iterable[str]) -> list[str]:
    """Return ``"name: value"`` for every header in *names* present in *headers*."""
    lowered = {str(k).lower(): v for k, v in headers.items()}
    found = []
    for name in names:
        value = lowered.get(name.lower())
        if value:
            found.append(f"{name}: {value}")
    return found
