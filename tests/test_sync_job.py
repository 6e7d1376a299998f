"""Batch handling from raw queue body to reported outcome."""
import json

import pytest

from command_sync.integrations.discord_commands import DiscordCommandClient
from command_sync.jobs.sync_job import MessageDecodeError, SyncJobHandler, decode_message
from command_sync.services.outcome_reporter import OutcomeReporter
from command_sync.services.reconciliation_engine import ReconciliationEngine
from command_sync.utils.ratelimiter import ReactiveRateLimiter
from conftest import FakeCommandClient, FakeHTTPResponse, FakeHTTPSession, sync_message

OLD = [{"name": "info", "description": "Info", "type": "info"}, {"name": "kick", "description": "Kick", "type": "kick"}]


def _handler(client, reporter):
    return SyncJobHandler(ReconciliationEngine(client), reporter)


# ------------------------------- decoding --------------------------------- #

def test_decode_camel_case_message():
    body = json.dumps(sync_message(
        commandsToAdd=[{"name": "ban", "type": "ban"}],
        oldCommands=OLD,
        appId=123456789,
        serverId=987654321,
    ))
    request = decode_message(body.encode())
    assert request is not None
    assert request.app_id == "123456789"
    assert request.server_id == "987654321"
    assert request.commands_to_add[0].kind == "ban"
    assert request.commands_to_add[0].description == ""
    assert [c.name for c in request.old_commands] == ["info", "kick"]
    assert request.config == {"prefix": "!", "commands": ["ban"]}
    assert "bot-token" not in repr(request)


def test_decode_ignores_other_codes():
    assert decode_message(json.dumps(sync_message(code=2))) is None
    assert decode_message(json.dumps({"code": 7})) is None


@pytest.mark.parametrize("code", [True, 1.0, "1", None])
def test_decode_only_accepts_integer_sync_code(code):
    assert decode_message(json.dumps(sync_message(code=code))) is None
    assert decode_message(json.dumps(sync_message(code=1))) is not None


@pytest.mark.parametrize("body", ["not json", "[1, 2]", "\"text\""])
def test_decode_rejects_malformed_json(body):
    with pytest.raises(MessageDecodeError):
        decode_message(body)


@pytest.mark.parametrize("missing", ["token", "serverId", "appId", "commandsToAdd", "oldCommands"])
def test_decode_fails_closed_on_missing_fields(missing):
    message = sync_message()
    del message[missing]
    with pytest.raises(MessageDecodeError) as exc:
        decode_message(json.dumps(message))
    assert missing in str(exc.value)


def test_decode_rejects_empty_token():
    with pytest.raises(MessageDecodeError):
        decode_message(json.dumps(sync_message(token="")))


def test_decode_rejects_command_without_name():
    with pytest.raises(MessageDecodeError):
        decode_message(json.dumps(sync_message(commandsToDelete=[{"type": "info"}])))


# ------------------------------ end to end -------------------------------- #

@pytest.mark.asyncio
async def test_successful_batch_posts_success_update_with_config():
    client = FakeCommandClient(remote=OLD)
    session = FakeHTTPSession([FakeHTTPResponse(200)])
    handler = _handler(client, OutcomeReporter(session, base_url="http://localhost:8080/web/private"))
    message = sync_message(commandsToAdd=[{"name": "ban", "type": "ban"}], commandsToDelete=[], oldCommands=OLD)

    outcome = await handler.handle_message(json.dumps(message))

    assert outcome is not None and outcome.success is True
    assert client.calls == [("create", "ban")]
    assert session.requests == [{
        "method": "POST",
        "url": "http://localhost:8080/web/private/successUpdate",
        "headers": {},
        "json": {"serverid": "guild-1", "config": message["config"]},
    }]


@pytest.mark.asyncio
async def test_failed_create_posts_fail_update_after_wipe_and_restore():
    client = FakeCommandClient(remote=OLD, create_statuses=[500])
    session = FakeHTTPSession([FakeHTTPResponse(200)])
    handler = _handler(client, OutcomeReporter(session, base_url="http://localhost:8080/web/private"))
    message = sync_message(commandsToAdd=[{"name": "ban", "type": "ban"}], commandsToDelete=[], oldCommands=OLD)

    outcome = await handler.handle_message(json.dumps(message))

    assert outcome is not None and outcome.success is False
    assert client.calls == [
        ("create", "ban"),
        ("list", None),
        ("delete", "info"),
        ("delete", "kick"),
        ("create", "info"),
        ("create", "kick"),
    ]
    assert client.remote_names == ["info", "kick"]
    assert len(session.requests) == 1
    assert session.requests[0]["url"] == "http://localhost:8080/web/private/failUpdate"
    assert session.requests[0]["json"] == {"serverid": "guild-1"}


@pytest.mark.asyncio
async def test_inconsistent_rollback_still_reports_failure(fake_reporter):
    client = FakeCommandClient(remote=OLD, create_statuses=[500, 500])
    outcome = await _handler(client, fake_reporter).handle_message(
        json.dumps(sync_message(commandsToAdd=[{"name": "ban", "type": "ban"}], oldCommands=OLD))
    )
    assert outcome.success is False
    assert [o.success for o in fake_reporter.outcomes] == [False]


@pytest.mark.asyncio
async def test_unparseable_rollback_listing_still_reports_failure(recording_sleep):
    session = FakeHTTPSession([
        FakeHTTPResponse(500, json.dumps({"message": "boom"})),
        FakeHTTPResponse(200, json.dumps([{"name": "orphan"}])),
        FakeHTTPResponse(201, json.dumps({"id": "1", "name": "info", "description": "Info"})),
        FakeHTTPResponse(200),
    ])
    client = DiscordCommandClient(
        session,
        base_url="https://discord.test/api/v9/applications",
        limiter=ReactiveRateLimiter(sleep=recording_sleep),
    )
    handler = _handler(client, OutcomeReporter(session, base_url="http://localhost:8080/web/private"))
    message = sync_message(commandsToAdd=[{"name": "ban", "type": "ban"}], oldCommands=OLD[:1])

    outcome = await handler.handle_message(json.dumps(message))

    assert outcome is not None and outcome.success is False
    assert [r["method"] for r in session.requests] == ["POST", "GET", "POST", "POST"]
    assert session.requests[2]["json"]["name"] == "info"
    assert session.requests[-1]["url"] == "http://localhost:8080/web/private/failUpdate"
    assert session.requests[-1]["json"] == {"serverid": "guild-1"}


@pytest.mark.asyncio
async def test_malformed_message_is_logged_and_not_reported(fake_reporter):
    client = FakeCommandClient()
    handler = _handler(client, fake_reporter)
    assert await handler.handle_message(b"{broken") is None
    assert await handler.handle_message(json.dumps(sync_message(token=None))) is None
    assert client.calls == []
    assert fake_reporter.outcomes == []


@pytest.mark.asyncio
async def test_ignored_code_makes_no_calls(fake_reporter):
    client = FakeCommandClient()
    assert await _handler(client, fake_reporter).handle_message(json.dumps(sync_message(code=3))) is None
    assert client.calls == []
    assert fake_reporter.outcomes == []


@pytest.mark.asyncio
async def test_engine_exception_is_contained(fake_reporter):
    class ExplodingClient(FakeCommandClient):
        async def create_command(self, *args, **kwargs):
            raise ConnectionError("socket closed")

    handler = _handler(ExplodingClient(), fake_reporter)
    message = sync_message(commandsToAdd=[{"name": "ban", "type": "ban"}])
    assert await handler.handle_message(json.dumps(message)) is None
    assert fake_reporter.outcomes == []
