"""Reconciliation engine orchestrator.

Drives one batch from the current remote command set to the desired one:

1. ADDING: create every command in ``commands_to_add + commands_to_update``.
   Discord keys guild commands by name, so a create with an existing name
   overwrites it; updates are plain creates. Stops at the first non-2xx.
2. CLEANING: list the live remote commands, keep those whose name is in
   ``commands_to_delete`` and delete them by id. Only 204 counts as a
   confirmed delete. Stops at the first failure.
3. ROLLING_BACK (on failure of 1 or 2): delete *every* remote command, then
   re-create ``old_commands``. A partial add/clean may have left any mixture
   behind, so the wipe is unfiltered.

Terminal states: SUCCESS, ROLLED_BACK (remote consistent again, batch still
failed) and INCONSISTENT (restore failed; not retried, logged distinctly).

All remote calls are awaited one after another. The reactive rate limiter
relies on never having two calls of a batch in flight.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from command_sync.integrations.discord_commands import RemoteResponse
from command_sync.models.enums import SyncState
from command_sync.models.schemas import LogicalCommand, ReconciliationRequest, RemoteCommandSpec
from command_sync.services.command_mapping import to_remote_spec
from command_sync.utils import get_logger, log_business_event

logger = get_logger(__name__)

DELETE_CONFIRMED_STATUS = 204


class CommandClientProtocol(Protocol):
    async def create_command(self, app_id: str, server_id: str, spec: RemoteCommandSpec, token: str) -> RemoteResponse: ...
    async def list_commands(self, app_id: str, server_id: str, token: str) -> RemoteResponse: ...
    async def delete_command(self, app_id: str, server_id: str, command_id: str, token: str) -> RemoteResponse: ...


@dataclass
class PhaseResult:
    success: bool
    calls: int = 0
    failed_command: Optional[str] = None
    status: Optional[int] = None


@dataclass
class SyncResult:
    state: SyncState
    phases: list[SyncState] = field(default_factory=list)
    failed_phase: Optional[SyncState] = None
    failed_command: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state == SyncState.SUCCESS


class ReconciliationEngine:
    def __init__(self, client: CommandClientProtocol):
        self.client = client

    async def add_commands(self, commands: Sequence[LogicalCommand], app_id: str, server_id: str, token: str) -> PhaseResult:
        calls = 0
        for command in commands:
            result = await self.client.create_command(app_id, server_id, to_remote_spec(command), token)
            calls += 1
            if result.ok:
                logger.info(
                    "Added command" if result.status == 201 else "Updated command",
                    command=command.name,
                    server_id=server_id,
                    status=result.status,
                )
            else:
                logger.warning("Failed to add command", command=command.name, server_id=server_id, status=result.status)
                return PhaseResult(success=False, calls=calls, failed_command=command.name, status=result.status)
        return PhaseResult(success=True, calls=calls)

    async def clean_commands(self, commands: Sequence[LogicalCommand], app_id: str, server_id: str, token: str) -> PhaseResult:
        if not commands:
            return PhaseResult(success=True)
        listing = await self.client.list_commands(app_id, server_id, token)
        calls = 1
        if not listing.ok or listing.data is None:
            logger.warning("Failed to list commands for cleanup", server_id=server_id, status=listing.status)
            return PhaseResult(success=False, calls=calls, status=listing.status)

        names = {command.name for command in commands}
        for record in (r for r in listing.data if r.name in names):
            result = await self.client.delete_command(app_id, server_id, record.id, token)
            calls += 1
            if result.status == DELETE_CONFIRMED_STATUS:
                logger.info("Removed command", command=record.name, server_id=server_id)
            else:
                logger.warning("Failed to remove command", command=record.name, server_id=server_id, status=result.status)
                return PhaseResult(success=False, calls=calls, failed_command=record.name, status=result.status)
        return PhaseResult(success=True, calls=calls)

    async def rollback_commands(self, old_commands: Sequence[LogicalCommand], app_id: str, server_id: str, token: str) -> SyncState:
        """Wipe the remote command set and restore ``old_commands``.

        Returns ROLLED_BACK when the restore fully succeeded on a clean wipe,
        otherwise INCONSISTENT.
        """
        logger.warning("Rolling back commands", server_id=server_id, restore_count=len(old_commands))
        wipe_complete = True
        listing = await self.client.list_commands(app_id, server_id, token)
        if not listing.ok or listing.data is None:
            logger.error("Failed to list commands for rollback wipe", server_id=server_id, status=listing.status)
            wipe_complete = False
        else:
            for record in listing.data:
                result = await self.client.delete_command(app_id, server_id, record.id, token)
                if result.status != DELETE_CONFIRMED_STATUS:
                    logger.warning("Failed to wipe command during rollback", command=record.name, server_id=server_id, status=result.status)
                    wipe_complete = False

        for command in old_commands:
            result = await self.client.create_command(app_id, server_id, to_remote_spec(command), token)
            if result.ok:
                logger.info("Restored command", command=command.name, server_id=server_id)
                continue
            self._mark_inconsistent(server_id, reason="restore_failed", command=command.name, status=result.status)
            return SyncState.INCONSISTENT

        if not wipe_complete:
            self._mark_inconsistent(server_id, reason="wipe_incomplete")
            return SyncState.INCONSISTENT

        log_business_event("commands_rolled_back", {"restored": len(old_commands)}, server_id=server_id)
        return SyncState.ROLLED_BACK

    @staticmethod
    def _mark_inconsistent(server_id: str, *, reason: str, command: Optional[str] = None, status: Optional[int] = None) -> None:
        logger.error(
            "Rollback failed; remote commands are inconsistent with the stored config",
            state=SyncState.INCONSISTENT.value,
            reason=reason,
            command=command,
            server_id=server_id,
            status=status,
        )
        log_business_event("commands_inconsistent", {"reason": reason, "command": command}, server_id=server_id)

    async def run(self, request: ReconciliationRequest) -> SyncResult:
        """Run one batch through ADDING → CLEANING, rolling back on failure."""
        phases = [SyncState.START, SyncState.ADDING]
        app_id, server_id, token = request.app_id, request.server_id, request.token

        added = await self.add_commands(request.commands_to_apply, app_id, server_id, token)
        if not added.success:
            return await self._roll_back(request, phases, SyncState.ADDING, added)

        phases.append(SyncState.CLEANING)
        cleaned = await self.clean_commands(request.commands_to_delete, app_id, server_id, token)
        if not cleaned.success:
            return await self._roll_back(request, phases, SyncState.CLEANING, cleaned)

        phases.append(SyncState.SUCCESS)
        log_business_event(
            "commands_synced",
            {"applied": added.calls, "remote_calls": added.calls + cleaned.calls},
            server_id=server_id,
        )
        return SyncResult(state=SyncState.SUCCESS, phases=phases)

    async def _roll_back(self, request: ReconciliationRequest, phases: list[SyncState], failed_phase: SyncState, failure: PhaseResult) -> SyncResult:
        phases.append(SyncState.ROLLING_BACK)
        state = await self.rollback_commands(request.old_commands, request.app_id, request.server_id, request.token)
        phases.append(state)
        return SyncResult(state=state, phases=phases, failed_phase=failed_phase, failed_command=failure.failed_command)


__all__ = ["ReconciliationEngine", "SyncResult", "PhaseResult", "CommandClientProtocol", "DELETE_CONFIRMED_STATUS"]
