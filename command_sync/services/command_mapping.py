"""Pure mapping from desired commands to Discord command bodies.

The same function serves the add pass and the rollback restore so both
always produce identical option lists:

* every command gets a ``user`` option, required unless the kind is ``info``;
* ``ban`` and ``set`` additionally get optional ``amount`` (integer) and
  ``reason`` (string) options, in that order.
"""
from __future__ import annotations

from command_sync.models.enums import ApplicationCommandType, CommandKind, OptionType
from command_sync.models.schemas import LogicalCommand, OptionSpec, RemoteCommandSpec

AMOUNT_REASON_KINDS = frozenset({CommandKind.BAN.value, CommandKind.SET.value})


def build_options(kind: str) -> list[OptionSpec]:
    options = [
        OptionSpec(
            name="user",
            description="User to call command on",
            type=OptionType.USER,
            required=kind != CommandKind.INFO.value,
        )
    ]
    if kind in AMOUNT_REASON_KINDS:
        options.append(OptionSpec(name="amount", description="Amount", type=OptionType.INTEGER, required=False))
        options.append(OptionSpec(name="reason", description="Reason for ban", type=OptionType.STRING, required=False))
    return options


def to_remote_spec(command: LogicalCommand) -> RemoteCommandSpec:
    return RemoteCommandSpec(
        name=command.name,
        description=command.description,
        type=ApplicationCommandType.CHAT_INPUT,
        options=build_options(command.kind),
    )


__all__ = ["to_remote_spec", "build_options", "AMOUNT_REASON_KINDS"]
