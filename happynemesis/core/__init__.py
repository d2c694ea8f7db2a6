"""Operations, test context, the fault protocol and remote execution."""

from happynemesis.core.context import TestContext
from happynemesis.core.control import (
    Lit,
    LocalRemote,
    Remote,
    RemoteCommandError,
    SshRemote,
    on_many,
)
from happynemesis.core.fault import Fault, Noop
from happynemesis.core.operation import NodeAction, OpFunction, Operation, OpType, Outcome

__all__ = [
    "Fault",
    "Lit",
    "LocalRemote",
    "NodeAction",
    "Noop",
    "OpFunction",
    "OpType",
    "Operation",
    "Outcome",
    "Remote",
    "RemoteCommandError",
    "SshRemote",
    "TestContext",
    "on_many",
]
