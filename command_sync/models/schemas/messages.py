"""
Pydantic schemas for queue messages and reported outcomes.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .commands import LogicalCommand

class ReconciliationRequest(BaseModel):
    """
    Sync request decoded from a queue message (camelCase keys on the wire).

    ``commands_to_add`` and ``commands_to_update`` are applied in one add pass;
    ``old_commands`` is the last known-consistent state used for rollback.
    """
    code: int
    commands_to_add: List[LogicalCommand]
    commands_to_update: List[LogicalCommand]
    commands_to_delete: List[LogicalCommand]
    old_commands: List[LogicalCommand]
    app_id: str = Field(min_length=1)
    server_id: str = Field(min_length=1)
    token: str = Field(min_length=1, description="Bot token used for every remote call of this batch")
    config: Any = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        coerce_numbers_to_str=True,
    )

    @property
    def commands_to_apply(self) -> List[LogicalCommand]:
        return [*self.commands_to_add, *self.commands_to_update]

    def __repr__(self) -> str:  # keep the token out of logs
        return (
            f"ReconciliationRequest(app_id={self.app_id!r}, server_id={self.server_id!r}, "
            f"add={len(self.commands_to_add)}, update={len(self.commands_to_update)}, "
            f"delete={len(self.commands_to_delete)}, old={len(self.old_commands)})"
        )

    __str__ = __repr__

class ReconciliationOutcome(BaseModel):
    """Terminal result of one batch; ``config`` only travels on success."""
    success: bool
    server_id: str
    config: Optional[Any] = None

    def report_payload(self) -> dict:
        if self.success:
            return {"serverid": self.server_id, "config": self.config}
        return {"serverid": self.server_id}
