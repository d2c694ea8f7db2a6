"""happynemesis: fault injection for distributed systems tests.

Breaks network connectivity, clock synchrony and process liveness on the
nodes of a cluster under test when the harness sends a ``start`` operation,
and repairs the damage on ``stop``.

Example::

    from happynemesis import (
        IptablesNet, Operation, SshRemote, TestContext, partition_random_halves,
    )

    ctx = TestContext(["n1", "n2", "n3", "n4", "n5"], net=IptablesNet(), remote=SshRemote())
    nemesis = partition_random_halves().setup(ctx)
    nemesis.invoke(ctx, Operation.start())
    nemesis.invoke(ctx, Operation.stop())
    nemesis.teardown(ctx)

The library is silent by default; see ``happynemesis.logging_config``.
"""

import logging

from happynemesis.analysis import connectivity_frame, plot_grudge, reachable_from
from happynemesis.core import (
    Fault,
    Lit,
    LocalRemote,
    NodeAction,
    Noop,
    OpFunction,
    Operation,
    OpType,
    Outcome,
    Remote,
    RemoteCommandError,
    SshRemote,
    TestContext,
    on_many,
)
from happynemesis.faults import (
    ClockScrambler,
    NodeStartStopper,
    Partitioner,
    PartitionState,
    bisect,
    bridge,
    complete_grudge,
    hammer_time,
    majorities_ring,
    majority,
    partition_bridge,
    partition_halves,
    partition_majorities_ring,
    partition_random_halves,
    partition_random_node,
    set_time,
    split_one,
)
from happynemesis.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from happynemesis.net import IptablesNet, Net

logging.getLogger("happynemesis").addHandler(logging.NullHandler())

__all__ = [
    # Core
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
    # Network
    "IptablesNet",
    "Net",
    # Faults
    "ClockScrambler",
    "NodeStartStopper",
    "PartitionState",
    "Partitioner",
    "bisect",
    "bridge",
    "complete_grudge",
    "hammer_time",
    "majorities_ring",
    "majority",
    "partition_bridge",
    "partition_halves",
    "partition_majorities_ring",
    "partition_random_halves",
    "partition_random_node",
    "set_time",
    "split_one",
    # Analysis
    "connectivity_frame",
    "plot_grudge",
    "reachable_from",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
