"""Sync request handling: one queue message in, one reported outcome out.

The transport has already removed (acknowledged) the message before it gets
here, so nothing raised below leads to redelivery. Every failure is logged at
this boundary and the worker moves on to the next message.
"""
from __future__ import annotations

import json
from typing import Optional, Union

from pydantic import ValidationError

from command_sync.models.enums import MessageCode
from command_sync.models.schemas import ReconciliationOutcome, ReconciliationRequest
from command_sync.services.outcome_reporter import OutcomeReporter
from command_sync.services.reconciliation_engine import ReconciliationEngine
from command_sync.utils import get_logger

logger = get_logger(__name__)


class MessageDecodeError(ValueError):
    """Queue message is not valid JSON or does not match the sync request schema."""


def decode_message(body: Union[bytes, str]) -> Optional[ReconciliationRequest]:
    """Decode a raw queue body.

    Returns None for well-formed messages whose code is not the JSON integer
    1 (booleans, floats and strings are ignored too). Raises
    MessageDecodeError for anything malformed.
    """
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MessageDecodeError(f"Message is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise MessageDecodeError(f"Message must be a JSON object, got {type(parsed).__name__}")

    code = parsed.get("code")
    if type(code) is not int or code != MessageCode.SYNC_REQUEST:
        logger.debug("Ignoring message with unhandled code", code=code)
        return None

    try:
        return ReconciliationRequest.model_validate(parsed)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise MessageDecodeError(f"Invalid sync request fields: {', '.join(fields)}") from e


class SyncJobHandler:
    def __init__(self, engine: ReconciliationEngine, reporter: OutcomeReporter):
        self.engine = engine
        self.reporter = reporter

    async def handle_message(self, body: Union[bytes, str]) -> Optional[ReconciliationOutcome]:
        try:
            request = decode_message(body)
            if request is None:
                return None
            return await self.process(request)
        except MessageDecodeError as e:
            logger.error("Rejected malformed sync message", error=str(e))
        except Exception as e:
            logger.error("Sync job failed", error=str(e), exc_info=True)
        return None

    async def process(self, request: ReconciliationRequest) -> ReconciliationOutcome:
        logger.info("Processing sync request", request=repr(request))
        result = await self.engine.run(request)
        outcome = ReconciliationOutcome(
            success=result.success,
            server_id=request.server_id,
            config=request.config if result.success else None,
        )
        logger.info(
            "Sync request finished",
            server_id=request.server_id,
            state=result.state.value,
            failed_phase=result.failed_phase.value if result.failed_phase else None,
            failed_command=result.failed_command,
        )
        await self.reporter.report(outcome)
        return outcome


__all__ = ["SyncJobHandler", "MessageDecodeError", "decode_message"]
