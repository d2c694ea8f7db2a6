"""Operations exchanged between the test harness and a nemesis.

The harness invokes a fault with an ``Operation`` whose ``f`` is ``START`` or
``STOP``. The fault returns a copy of that operation carrying a ``value``
describing what it did, and for faults whose effect is not a pass/fail
verdict (process pauses, clock skew) the copy is tagged ``OpType.INFO``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class OpFunction(Enum):
    """What a nemesis operation asks for."""

    START = "start"
    STOP = "stop"


class OpType(Enum):
    """Lifecycle tag of an operation."""

    INVOKE = "invoke"
    OK = "ok"
    INFO = "info"
    FAIL = "fail"


class Outcome(Enum):
    """Expected, benign outcomes reported as values instead of exceptions."""

    NO_TARGET = "no-target"
    NOT_STARTED = "not-started"


class NodeAction(Enum):
    """Per-node effect reported by process pause/resume actions."""

    PAUSED = "paused"
    RESUMED = "resumed"


@dataclass(frozen=True)
class Operation:
    """A single nemesis operation.

    Attributes:
        f: Requested function.
        value: Effect description, filled in by the fault.
        type: Lifecycle tag. ``INVOKE`` on the way in.
        process: Harness process id that issued the operation, if any.
    """

    f: OpFunction
    value: Any = None
    type: OpType = OpType.INVOKE
    process: Any = None

    @classmethod
    def start(cls, **kwargs: Any) -> Operation:
        return cls(OpFunction.START, **kwargs)

    @classmethod
    def stop(cls, **kwargs: Any) -> Operation:
        return cls(OpFunction.STOP, **kwargs)

    def with_value(self, value: Any, type: OpType | None = None) -> Operation:
        """Return a copy annotated with ``value`` (and ``type``, if given)."""
        if type is None:
            return replace(self, value=value)
        return replace(self, value=value, type=type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "f": self.f.value,
            "type": self.type.value,
            "value": self.value,
            "process": self.process,
        }
