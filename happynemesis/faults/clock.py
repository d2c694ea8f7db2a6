"""Clock skew faults.

Skew is applied by writing a libfaketime offset to a config file on each
node, not by changing the system clock. Processes started under libfaketime
pick the offset up from that file.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from happynemesis.core.control import Lit, on_many
from happynemesis.core.fault import unknown_function
from happynemesis.core.operation import OpFunction, Operation, OpType

if TYPE_CHECKING:
    from happynemesis.core.context import TestContext
    from happynemesis.core.control import Remote

logger = logging.getLogger(__name__)

FAKETIME_RC = "/root/.faketimerc"


def skew_directive(t: int) -> str:
    """libfaketime directive for an offset of ``t`` seconds.

    Zero means no skew and yields an empty directive; otherwise the sign is
    always written out, e.g. ``+5s`` or ``-5s``.
    """
    if t == 0:
        return ""
    if t > 0:
        return f"+{t}s"
    return f"{t}s"


def set_time(remote: Remote, node: str, t: int, path: str = FAKETIME_RC) -> str:
    """Set ``node``'s clock skew to ``t`` seconds.

    Returns:
        The directive that was written.
    """
    directive = skew_directive(t)
    remote.exec(node, "printf", "%s", directive, Lit(">"), path, sudo=True)
    logger.debug("[Nemesis] %s skew set to %r", node, directive, extra={"node": node})
    return directive


class ClockScrambler:
    """Randomizes every node's clock within a ``dt``-second window.

    On start each node gets an independent offset drawn uniformly from
    ``[-dt, dt)``. Stop and teardown reset every node to zero skew.

    Args:
        dt: Half-width of the skew window in seconds. Must be positive.
        rng: Random source for the offsets.
        path: faketime config file on the nodes.
    """

    def __init__(self, dt: int, rng: random.Random | None = None, path: str = FAKETIME_RC) -> None:
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.dt = dt
        self.path = path
        self._rng = rng or random.Random()

    def _offset(self) -> int:
        return self._rng.randrange(-self.dt, self.dt)

    def _reset(self, ctx: TestContext) -> dict[str, int]:
        def reset(node: str) -> int:
            set_time(ctx.remote, node, 0, self.path)
            return 0

        return on_many(ctx.nodes, reset)

    def setup(self, ctx: TestContext, node: str | None = None) -> ClockScrambler:
        return self

    def invoke(self, ctx: TestContext, op: Operation) -> Operation:
        if op.f is OpFunction.START:
            # Drawn in node order so a seeded rng gives the same offsets.
            offsets = {node: self._offset() for node in ctx.nodes}

            def skew(node: str) -> int:
                set_time(ctx.remote, node, offsets[node], self.path)
                return offsets[node]

            value = on_many(ctx.nodes, skew)
            logger.info("[Nemesis] Clocks skewed: %s", value)
            return op.with_value(value, type=OpType.INFO)
        if op.f is OpFunction.STOP:
            value = self._reset(ctx)
            logger.info("[Nemesis] Clocks reset on %d node(s)", len(value))
            return op.with_value(value, type=OpType.INFO)
        raise unknown_function(self, op)

    def teardown(self, ctx: TestContext) -> None:
        self._reset(ctx)
