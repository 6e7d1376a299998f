"""Reports batch outcomes to the supervising web service.

    POST {REPORT_BASE_URL}/successUpdate  {"serverid": ..., "config": ...}
    POST {REPORT_BASE_URL}/failUpdate     {"serverid": ...}

Non-2xx answers are logged and reported back as False; there is no retry.
"""
from __future__ import annotations

import aiohttp

from command_sync.config import REPORT_BASE_URL
from command_sync.models.schemas import ReconciliationOutcome
from command_sync.utils import get_logger

logger = get_logger(__name__)


class OutcomeReporter:
    def __init__(self, session: aiohttp.ClientSession, *, base_url: str = REPORT_BASE_URL):
        self.session = session
        self.base_url = base_url.rstrip("/")

    def endpoint_for(self, outcome: ReconciliationOutcome) -> str:
        return f"{self.base_url}/{'successUpdate' if outcome.success else 'failUpdate'}"

    async def report(self, outcome: ReconciliationOutcome) -> bool:
        url = self.endpoint_for(outcome)
        async with self.session.post(url, json=outcome.report_payload()) as resp:
            if 200 <= resp.status < 300:
                logger.info("Outcome reported", url=url, server_id=outcome.server_id, success=outcome.success)
                return True
            text = await resp.text()
            logger.error("Outcome report rejected", url=url, server_id=outcome.server_id, status=resp.status, body=text[:200])
            return False


__all__ = ["OutcomeReporter"]
