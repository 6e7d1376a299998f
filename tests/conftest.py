"""Pytest fixtures and fakes.

FakeCommandClient keeps an in-memory guild command collection and records
every call in order, so tests can assert on the exact remote call sequence.
Scripted statuses are consumed per call; once exhausted, calls succeed.
"""
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure project root on sys.path so 'command_sync' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from command_sync.integrations.discord_commands import RemoteResponse  # noqa: E402
from command_sync.models.schemas import (  # noqa: E402
    LogicalCommand,
    ReconciliationOutcome,
    ReconciliationRequest,
    RemoteCommandRecord,
    RemoteCommandSpec,
)


class FakeCommandClient:
    def __init__(
        self,
        remote: list[dict] | None = None,
        *,
        create_statuses: list[int] | None = None,
        delete_statuses: list[int] | None = None,
        list_statuses: list[int] | None = None,
    ):
        self.remote: dict[str, RemoteCommandRecord] = {}
        self._next_id = 1000
        for item in remote or []:
            self._store(item["name"], item.get("description", ""))
        self.create_statuses = list(create_statuses or [])
        self.delete_statuses = list(delete_statuses or [])
        self.list_statuses = list(list_statuses or [])
        self.calls: list[tuple[str, str | None]] = []
        self.tokens: set[str] = set()
        self.listed_snapshots: list[list[str]] = []

    def _store(self, name: str, description: str) -> RemoteCommandRecord:
        for record_id, record in list(self.remote.items()):
            if record.name == name:
                del self.remote[record_id]
        self._next_id += 1
        record = RemoteCommandRecord(id=str(self._next_id), name=name, description=description)
        self.remote[record.id] = record
        return record

    @property
    def remote_names(self) -> list[str]:
        return sorted(record.name for record in self.remote.values())

    def calls_of(self, kind: str) -> list[str | None]:
        return [target for call, target in self.calls if call == kind]

    async def create_command(self, app_id: str, server_id: str, spec: RemoteCommandSpec, token: str) -> RemoteResponse:
        self.calls.append(("create", spec.name))
        self.tokens.add(token)
        status = self.create_statuses.pop(0) if self.create_statuses else 201
        if 200 <= status < 300:
            return RemoteResponse(status=status, data=self._store(spec.name, spec.description))
        return RemoteResponse(status=status, data={"message": "boom"})

    async def list_commands(self, app_id: str, server_id: str, token: str) -> RemoteResponse:
        self.calls.append(("list", None))
        self.tokens.add(token)
        status = self.list_statuses.pop(0) if self.list_statuses else 200
        if 200 <= status < 300:
            records = list(self.remote.values())
            self.listed_snapshots.append(sorted(r.name for r in records))
            return RemoteResponse(status=status, data=records)
        return RemoteResponse(status=status, data={"message": "boom"})

    async def delete_command(self, app_id: str, server_id: str, command_id: str, token: str) -> RemoteResponse:
        record = self.remote.get(command_id)
        self.calls.append(("delete", record.name if record else command_id))
        self.tokens.add(token)
        status = self.delete_statuses.pop(0) if self.delete_statuses else 204
        if status == 204:
            self.remote.pop(command_id, None)
        return RemoteResponse(status=status)


class FakeReporter:
    def __init__(self) -> None:
        self.outcomes: list[ReconciliationOutcome] = []

    async def report(self, outcome: ReconciliationOutcome) -> bool:
        self.outcomes.append(outcome)
        return True


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


class FakeHTTPResponse:
    def __init__(self, status: int, body: str = "", headers: dict[str, str] | None = None):
        self.status = status
        self._body = body
        self.headers = headers or {}

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "FakeHTTPResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class FakeHTTPSession:
    """Minimal aiohttp.ClientSession double: queued responses, recorded requests."""

    def __init__(self, responses: list[FakeHTTPResponse] | None = None):
        self.responses = list(responses or [])
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, *, headers: dict | None = None, json: Any = None) -> FakeHTTPResponse:
        self.requests.append({"method": method, "url": url, "headers": headers or {}, "json": json})
        return self.responses.pop(0) if self.responses else FakeHTTPResponse(200, "{}")

    def post(self, url: str, *, json: Any = None, headers: dict | None = None) -> FakeHTTPResponse:
        return self.request("POST", url, headers=headers, json=json)


def cmd(name: str, kind: str = "info", description: str | None = None) -> LogicalCommand:
    return LogicalCommand(name=name, kind=kind, description=description if description is not None else f"{name} command")


def sync_message(**overrides: Any) -> dict[str, Any]:
    message: dict[str, Any] = {
        "code": 1,
        "commandsToAdd": [],
        "commandsToUpdate": [],
        "commandsToDelete": [],
        "oldCommands": [],
        "appId": "app-1",
        "serverId": "guild-1",
        "token": "bot-token",
        "config": {"prefix": "!", "commands": ["ban"]},
    }
    message.update(overrides)
    return message


def make_request(**overrides: Any) -> ReconciliationRequest:
    return ReconciliationRequest.model_validate(sync_message(**overrides))


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def fake_reporter() -> FakeReporter:
    return FakeReporter()
