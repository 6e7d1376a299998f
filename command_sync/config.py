"""Core worker configuration & tunable rules.

Everything that may need adjusting per deployment (remote endpoints, rate
limit margin, queue location, logging) is centralized here as module
constants read from environment variables. Grouped settings are plain dicts
so tests can monkeypatch individual values.

No bot token lives here: every batch carries its own token and it is passed
explicitly to each remote call.
"""
from __future__ import annotations

import os

# ------------------------------ Remote APIs ------------------------------- #
# Collection root for application commands; paths are appended as
# /{app_id}/guilds/{server_id}/commands[/{command_id}]
DISCORD_API_BASE_URL: str = os.getenv("DISCORD_API_BASE_URL", "https://discord.com/api/v9/applications")

# Supervising web service receiving successUpdate / failUpdate reports.
REPORT_BASE_URL: str = os.getenv("REPORT_BASE_URL", "http://localhost:8080/web/private")

# Total timeout for a single HTTP call. Unset means no deadline.
_timeout_env = os.getenv("HTTP_TIMEOUT_SECONDS")
HTTP_TIMEOUT_SECONDS: float | None = float(_timeout_env) if _timeout_env and _timeout_env.strip() else None

# ------------------------------ Rate Limiting ----------------------------- #
RATE_LIMIT_SETTINGS: dict[str, float | str] = {
    # Added on top of reset-after to absorb clock skew with the remote side.
    "margin_seconds": float(os.getenv("RATE_LIMIT_MARGIN_SECONDS", "2")),
    # Used when the quota is exhausted but reset-after is missing/unparseable.
    "default_reset_after_seconds": 20.0,
    "remaining_header": "X-RateLimit-Remaining",
    "reset_after_header": "X-RateLimit-Reset-After",
}

# --------------------------------- Queue ---------------------------------- #
QUEUE_SETTINGS: dict[str, str | float | bool] = {
    "use_redis": os.getenv("USE_REDIS", "true").lower() in ("true", "1", "yes"),
    "redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    "queue_key": os.getenv("COMMAND_QUEUE_KEY", "commands"),
    "poll_timeout": 5.0,
    "redis_health_check_timeout": 2.0,
}

# -------------------------------- Logging --------------------------------- #
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE") or None

__all__ = [
    "DISCORD_API_BASE_URL",
    "REPORT_BASE_URL",
    "HTTP_TIMEOUT_SECONDS",
    "RATE_LIMIT_SETTINGS",
    "QUEUE_SETTINGS",
    "LOG_LEVEL",
    "LOG_FILE",
]
