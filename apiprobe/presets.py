"""
Fixed probe data: credentials, payloads, field names and path lists.

Every list is sent byte-for-byte as written here so scans stay reproducible.
Probes take one of these preset objects in their constructor; tests pass
smaller ones.
"""

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str


class BruteForcePreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    credentials: tuple[Credential, ...]
    burst_username: str = "admin"
    burst_password_prefix: str = "wrong"


class SQLInjectionPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    payloads: tuple[str, ...]
    body_fields: tuple[str, ...]


class InfoDisclosurePreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    debug_paths: tuple[str, ...]


# ── Brute force ────────────────────────────────────────────────────

BRUTE_FORCE = BruteForcePreset(
    credentials=(
        Credential(username="admin", password="admin"),
        Credential(username="admin", password="password"),
        Credential(username="user", password="password"),
        Credential(username="test", password="test"),
        Credential(username="guest", password="guest"),
    ),
)

# ── SQL injection ──────────────────────────────────────────────────

SQL_INJECTION = SQLInjectionPreset(
    payloads=(
        # Tautologies
        "' OR '1'='1",
        "' OR '1'='1' --",
        "' OR 1=1 --",
        "admin' --",
        "1' OR '1' = '1",
        "1 OR 1=1",
        # UNION probing
        "' UNION SELECT 1,2,3 --",
        "' UNION SELECT username,password,1 FROM users --",
        # Stacked query
        "'; DROP TABLE users; --",
    ),
    body_fields=("id", "userId", "username", "email", "search", "query"),
)

# ── Information disclosure ─────────────────────────────────────────

INFO_DISCLOSURE = InfoDisclosurePreset(
    debug_paths=(
        "/debug",
        "/status",
        "/health",
        "/metrics",
        "/admin",
        "/actuator",
        "/swagger",
        "/api-docs",
        "/openapi.json",
        "/trace",
        "/env",
    ),
)
