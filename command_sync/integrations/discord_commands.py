"""
Discord guild application-command client.

Thin typed wrapper over the three collection endpoints the sync needs:

    POST   /applications/{app_id}/guilds/{server_id}/commands
    GET    /applications/{app_id}/guilds/{server_id}/commands
    DELETE /applications/{app_id}/guilds/{server_id}/commands/{command_id}

Each operation issues exactly one HTTP request, hands the response headers to
the reactive rate limiter before returning, and reports the status code
instead of raising on non-2xx. Deciding whether a status is fatal is the
caller's job. Transport errors (``aiohttp.ClientError``) propagate.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp
from pydantic import ValidationError

from command_sync.config import DISCORD_API_BASE_URL
from command_sync.models.schemas import RemoteCommandRecord, RemoteCommandSpec
from command_sync.utils import get_logger
from command_sync.utils.ratelimiter import ReactiveRateLimiter, rate_limiter as default_rate_limiter

logger = get_logger(__name__)


@dataclass
class RemoteResponse:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class DiscordCommandClient:
    """Issues guild command calls on a caller-owned ``aiohttp.ClientSession``."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str = DISCORD_API_BASE_URL,
        limiter: Optional[ReactiveRateLimiter] = None,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter or default_rate_limiter

    # ----------------------------- internal helpers ----------------------------- #
    def _collection_url(self, app_id: str, server_id: str) -> str:
        return f"{self.base_url}/{app_id}/guilds/{server_id}/commands"

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        if not token:
            raise ValueError("Bot token is required for Discord command calls")
        return {"Authorization": f"Bot {token}"}

    async def _call(self, method: str, url: str, token: str, payload: Optional[dict] = None) -> RemoteResponse:
        headers = self._headers(token)
        async with self.session.request(method, url, headers=headers, json=payload) as resp:
            text = await resp.text()
            try:
                data = json.loads(text) if text else None
            except json.JSONDecodeError:
                data = {"raw": text}
            response = RemoteResponse(status=resp.status, headers=dict(resp.headers), data=data)
        logger.debug("Discord call completed", method=method, url=url, status=response.status)
        await self.limiter.apply_backpressure(response.headers)
        return response

    # ----------------------------- public API ----------------------------- #
    async def create_command(self, app_id: str, server_id: str, spec: RemoteCommandSpec, token: str) -> RemoteResponse:
        """Create a guild command; Discord overwrites an existing command with the same name."""
        response = await self._call("POST", self._collection_url(app_id, server_id), token, spec.to_payload())
        if response.ok and isinstance(response.data, dict):
            try:
                response.data = RemoteCommandRecord.model_validate(response.data)
            except ValidationError as e:
                logger.warning("Unexpected create response body", command=spec.name, error=str(e))
        return response

    async def list_commands(self, app_id: str, server_id: str, token: str) -> RemoteResponse:
        """List guild commands.

        On success ``data`` is a list of RemoteCommandRecord, or None when the
        body was not a JSON array of command objects.
        """
        response = await self._call("GET", self._collection_url(app_id, server_id), token)
        if response.ok:
            if isinstance(response.data, list):
                try:
                    response.data = [RemoteCommandRecord.model_validate(item) for item in response.data]
                except ValidationError as e:
                    logger.warning("Unparseable command in list response", server_id=server_id, error=str(e))
                    response.data = None
            else:
                logger.warning("Unexpected list response body", server_id=server_id, status=response.status)
                response.data = None
        return response

    async def delete_command(self, app_id: str, server_id: str, command_id: str, token: str) -> RemoteResponse:
        return await self._call("DELETE", f"{self._collection_url(app_id, server_id)}/{command_id}", token)


__all__ = ["DiscordCommandClient", "RemoteResponse"]
