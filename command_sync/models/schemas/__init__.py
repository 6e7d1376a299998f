"""
Pydantic schemas package.
"""
from .commands import LogicalCommand, OptionSpec, RemoteCommandSpec, RemoteCommandRecord
from .messages import ReconciliationRequest, ReconciliationOutcome

__all__ = [
    "LogicalCommand",
    "OptionSpec",
    "RemoteCommandSpec",
    "RemoteCommandRecord",
    "ReconciliationRequest",
    "ReconciliationOutcome",
]
