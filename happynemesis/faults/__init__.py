"""Fault injection for clusters under test.

Provides partition topologies and the ``Partitioner`` that applies them,
the ``ClockScrambler`` for clock skew, and the ``NodeStartStopper`` family
(including ``hammer_time``) for pausing processes.
"""

from happynemesis.faults.clock import ClockScrambler, set_time, skew_directive
from happynemesis.faults.node_faults import NodeStartStopper, hammer_time
from happynemesis.faults.partition import (
    Partitioner,
    PartitionState,
    heal,
    partition,
    partition_bridge,
    partition_halves,
    partition_majorities_ring,
    partition_random_halves,
    partition_random_node,
    render_grudge,
    snub_nodes,
)
from happynemesis.faults.topology import (
    Grudge,
    bisect,
    bridge,
    complete_grudge,
    majorities_ring,
    majority,
    split_one,
)

__all__ = [
    "ClockScrambler",
    "Grudge",
    "NodeStartStopper",
    "PartitionState",
    "Partitioner",
    "bisect",
    "bridge",
    "complete_grudge",
    "hammer_time",
    "heal",
    "majorities_ring",
    "majority",
    "partition",
    "partition_bridge",
    "partition_halves",
    "partition_majorities_ring",
    "partition_random_halves",
    "partition_random_node",
    "render_grudge",
    "set_time",
    "skew_directive",
    "snub_nodes",
    "split_one",
]
