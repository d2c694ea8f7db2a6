"""Network partition faults.

``partition`` applies a grudge by asking the ``Net`` collaborator to drop
traffic, one task per receiving node and one nested task per refused
source. ``Partitioner`` wraps a topology scheme in the fault lifecycle:
``start`` cuts the network according to the scheme, ``stop`` heals it.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from happynemesis.core.control import on_many
from happynemesis.core.fault import unknown_function
from happynemesis.core.operation import OpFunction, Operation
from happynemesis.faults import topology
from happynemesis.faults.topology import Grudge, Scheme

if TYPE_CHECKING:
    from happynemesis.core.context import TestContext

logger = logging.getLogger(__name__)

FULLY_CONNECTED = "fully connected"


def snub_nodes(ctx: TestContext, dest: str, sources: Iterable[str]) -> None:
    """Make ``dest`` drop all packets from each of ``sources``."""
    on_many(sources, lambda src: ctx.net.drop(ctx, src, dest))


def partition(ctx: TestContext, grudge: Grudge) -> None:
    """Apply a grudge.

    Does not heal first, so repeated calls are cumulative: a second grudge
    only adds drops on top of the first.
    """
    on_many(grudge, lambda node: snub_nodes(ctx, node, grudge[node]))


def heal(ctx: TestContext) -> None:
    """Restore full connectivity."""
    ctx.net.heal(ctx)


def render_grudge(grudge: Grudge) -> str:
    """Stable, readable rendering of a grudge."""
    parts = [f"{node}: [{', '.join(sorted(grudge[node]))}]" for node in sorted(grudge)]
    return "{" + ", ".join(parts) + "}"


class PartitionState(Enum):
    HEALED = "healed"
    PARTITIONED = "partitioned"


class Partitioner:
    """Cuts the network according to a scheme on start, heals on stop.

    A second start while already partitioned is not rejected: the new grudge
    is layered on top of the current one, since ``partition`` never heals.

    Args:
        scheme: Function from the test's nodes to the grudge to apply.
    """

    def __init__(self, scheme: Scheme) -> None:
        self.scheme = scheme
        self.state = PartitionState.HEALED

    def setup(self, ctx: TestContext, node: str | None = None) -> Partitioner:
        heal(ctx)
        self.state = PartitionState.HEALED
        return self

    def invoke(self, ctx: TestContext, op: Operation) -> Operation:
        if op.f is OpFunction.START:
            grudge = self.scheme(ctx.nodes)
            # Drops applied before a failure stay in place until healed.
            self.state = PartitionState.PARTITIONED
            partition(ctx, grudge)
            value = f"Cut off {render_grudge(grudge)}"
            logger.info("[Nemesis] %s", value)
            return op.with_value(value)
        if op.f is OpFunction.STOP:
            heal(ctx)
            self.state = PartitionState.HEALED
            logger.info("[Nemesis] Network healed")
            return op.with_value(FULLY_CONNECTED)
        raise unknown_function(self, op)

    def teardown(self, ctx: TestContext) -> None:
        heal(ctx)
        self.state = PartitionState.HEALED


def partition_halves() -> Partitioner:
    """Split into two halves, the first nodes together in the smaller half."""
    return Partitioner(topology.halves)


def partition_random_halves(rng: random.Random | None = None) -> Partitioner:
    """Split into randomly chosen halves."""
    return Partitioner(topology.random_halves(rng))


def partition_random_node(rng: random.Random | None = None) -> Partitioner:
    """Isolate a single random node from the rest."""
    return Partitioner(topology.random_node(rng))


def partition_majorities_ring(rng: random.Random | None = None) -> Partitioner:
    """Every node sees a different majority of a randomly ordered ring."""
    return Partitioner(topology.ring_majorities(rng))


def partition_bridge() -> Partitioner:
    """Two isolated halves joined only through a bridge node."""
    return Partitioner(topology.bridge)
