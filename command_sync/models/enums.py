"""Central Enum definitions for command sync states and Discord codes.

Numeric values of the Discord enums follow the Discord API so models can be
serialised straight onto the wire.
"""
from __future__ import annotations
import enum


class CommandKind(str, enum.Enum):
    """Kinds the argument mapping knows about. Other kind strings are valid too."""
    INFO = "info"
    BAN = "ban"
    SET = "set"


class ApplicationCommandType(int, enum.Enum):
    CHAT_INPUT = 1


class OptionType(int, enum.Enum):
    STRING = 3
    INTEGER = 4
    USER = 6


class MessageCode(int, enum.Enum):
    SYNC_REQUEST = 1


class SyncState(str, enum.Enum):
    START = "START"
    ADDING = "ADDING"
    CLEANING = "CLEANING"
    ROLLING_BACK = "ROLLING_BACK"
    SUCCESS = "SUCCESS"
    ROLLED_BACK = "ROLLED_BACK"
    INCONSISTENT = "INCONSISTENT"


__all__ = [
    "CommandKind",
    "ApplicationCommandType",
    "OptionType",
    "MessageCode",
    "SyncState",
]
