"""Node-level faults driven by start/stop operations.

``NodeStartStopper`` picks target nodes on start, runs a start action on
each of them, remembers them, and runs a stop action on the same nodes on
stop. ``hammer_time`` instantiates it to pause a process with SIGSTOP and
resume it with SIGCONT.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from happynemesis.core.control import on_many
from happynemesis.core.fault import unknown_function
from happynemesis.core.operation import NodeAction, OpFunction, Operation, OpType, Outcome

if TYPE_CHECKING:
    from happynemesis.core.context import TestContext

logger = logging.getLogger(__name__)

Targeter = Callable[[Sequence[str]], "str | Sequence[str] | None"]
NodeFn = Callable[["TestContext", str], Any]


def _as_targets(selection: str | Sequence[str] | None) -> tuple[str, ...]:
    """Normalize a targeter's answer into a tuple of nodes."""
    if selection is None:
        return ()
    if isinstance(selection, str):
        return (selection,)
    return tuple(dict.fromkeys(selection))


class NodeStartStopper:
    """Runs ``start`` on targeted nodes at start and ``stop`` on them at stop.

    Targets are re-selected on every start. At most one set of nodes is
    disrupted at a time: a start while nodes are still targeted reports what
    is already being disrupted and does nothing else. Every ``invoke`` on one
    instance holds the same lock for its whole duration, so a stop can never
    interleave with a start's targeting or actions.

    The values returned by the start and stop actions become the operation's
    value as a ``{node: result}`` mapping, tagged ``OpType.INFO``.

    Args:
        targeter: Given the test's nodes, returns a node, a collection of
            nodes, or None to skip this start.
        start: ``start(ctx, node)`` run on each target at start.
        stop: ``stop(ctx, node)`` run on each target at stop.
    """

    def __init__(self, targeter: Targeter, start: NodeFn, stop: NodeFn) -> None:
        self.targeter = targeter
        self.start = start
        self.stop = stop
        self._targeted: tuple[str, ...] | None = None
        self._lock = threading.Lock()

    @property
    def targeted(self) -> tuple[str, ...] | None:
        """Nodes currently disrupted, or None."""
        return self._targeted

    def setup(self, ctx: TestContext, node: str | None = None) -> NodeStartStopper:
        return self

    def invoke(self, ctx: TestContext, op: Operation) -> Operation:
        with self._lock:
            if op.f is OpFunction.START:
                value = self._start(ctx)
            elif op.f is OpFunction.STOP:
                value = self._stop(ctx)
            else:
                raise unknown_function(self, op)
            return op.with_value(value, type=OpType.INFO)

    def _start(self, ctx: TestContext) -> Any:
        targets = _as_targets(self.targeter(ctx.nodes))
        if not targets:
            logger.info("[Nemesis] No target selected; nothing to start")
            return Outcome.NO_TARGET
        if self._targeted is not None:
            logger.info("[Nemesis] Start ignored, already disrupting %s", list(self._targeted))
            return f"nemesis already disrupting {list(self._targeted)}"

        # Claimed before acting: if a start action fails, a later stop still
        # reaches every node that may have been disrupted.
        self._targeted = targets
        value = on_many(targets, lambda node: self.start(ctx, node))
        logger.info("[Nemesis] Started on %s: %s", list(targets), value)
        return value

    def _stop(self, ctx: TestContext) -> Any:
        if self._targeted is None:
            return Outcome.NOT_STARTED
        value = on_many(self._targeted, lambda node: self.stop(ctx, node))
        logger.info("[Nemesis] Stopped on %s: %s", list(self._targeted), value)
        self._targeted = None
        return value

    def teardown(self, ctx: TestContext) -> None:
        pass


def hammer_time(
    process: str,
    targeter: Targeter | None = None,
    rng: random.Random | None = None,
) -> NodeStartStopper:
    """Pause ``process`` on the targeted node(s) with SIGSTOP; resume with SIGCONT.

    Args:
        process: Process name, as matched by ``killall``.
        targeter: Picks the node(s) to pause. Defaults to one random node.
        rng: Random source for the default targeter.
    """
    if targeter is None:
        chooser = rng or random

        def targeter(nodes: Sequence[str]) -> str:
            return chooser.choice(list(nodes))

    def pause(ctx: TestContext, node: str) -> tuple[NodeAction, str]:
        ctx.remote.exec(node, "killall", "-s", "STOP", process, sudo=True)
        return (NodeAction.PAUSED, process)

    def resume(ctx: TestContext, node: str) -> tuple[NodeAction, str]:
        ctx.remote.exec(node, "killall", "-s", "CONT", process, sudo=True)
        return (NodeAction.RESUMED, process)

    return NodeStartStopper(targeter, pause, resume)
