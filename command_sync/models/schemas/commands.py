"""
Pydantic schemas for desired and remote command definitions.
"""
from typing import List
from pydantic import BaseModel, ConfigDict, Field

from command_sync.models.enums import ApplicationCommandType, OptionType

class LogicalCommand(BaseModel):
    """
    Desired-state descriptor produced by the upstream configuration service.
    The kind travels under the ``type`` key on the wire.
    """
    name: str = Field(min_length=1, description="Command name, unique within a batch")
    description: str = Field("", description="Help text shown by Discord")
    kind: str = Field(alias="type", description="info | ban | set | ... (open-ended)")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

class OptionSpec(BaseModel):
    """One argument of a slash command."""
    name: str
    description: str
    type: OptionType
    required: bool = False

    model_config = ConfigDict(frozen=True)

class RemoteCommandSpec(BaseModel):
    """
    Body sent to Discord to create (or overwrite by name) a guild command.
    Option order is part of the command's identity for display purposes.
    """
    name: str
    description: str
    type: ApplicationCommandType = ApplicationCommandType.CHAT_INPUT
    options: List[OptionSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")

class RemoteCommandRecord(BaseModel):
    """Discord's stored representation; read-only apart from deletion by id."""
    id: str
    name: str
    description: str = ""
    type: int = ApplicationCommandType.CHAT_INPUT.value
    options: List[dict] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)
