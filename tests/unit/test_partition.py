"""Unit tests for the partition applier and the Partitioner lifecycle."""

from __future__ import annotations

import random

import pytest

from happynemesis.core.control import RemoteCommandError
from happynemesis.core.fault import Fault
from happynemesis.core.operation import OpFunction, Operation, OpType
from happynemesis.faults.partition import (
    FULLY_CONNECTED,
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
from happynemesis.faults.topology import halves


class TestApplier:
    def test_snub_nodes_drops_each_source(self, ctx, net):
        snub_nodes(ctx, "n1", ["n2", "n3"])
        assert net.drops == {("n2", "n1"), ("n3", "n1")}

    def test_partition_applies_every_pair(self, ctx, net):
        grudge = {"n1": {"n2", "n3"}, "n2": {"n1"}, "n3": set()}
        partition(ctx, grudge)
        assert net.grudge() == {"n1": {"n2", "n3"}, "n2": {"n1"}}

    def test_partition_is_cumulative(self, ctx, net):
        partition(ctx, {"n1": {"n2"}})
        partition(ctx, {"n3": {"n4"}})
        assert net.drops == {("n2", "n1"), ("n4", "n3")}
        assert net.heals == 0

    def test_heal_clears_everything(self, ctx, net):
        partition(ctx, {"n1": {"n2"}})
        heal(ctx)
        heal(ctx)
        assert net.drops == set()
        assert net.heals == 2

    def test_collaborator_failure_propagates(self, ctx, net):
        def drop(ctx, src, dest):
            raise RemoteCommandError(dest, "iptables", 4, stderr="locked")

        net.drop = drop
        with pytest.raises(RemoteCommandError):
            partition(ctx, {"n1": {"n2"}})


class TestRenderGrudge:
    def test_sorted_rendering(self):
        assert render_grudge({"b": {"z", "a"}, "a": set()}) == "{a: [], b: [a, z]}"


class TestPartitioner:
    def test_implements_fault_protocol(self):
        assert isinstance(partition_halves(), Fault)

    def test_setup_heals(self, ctx, net):
        nemesis = Partitioner(halves)
        assert nemesis.setup(ctx) is nemesis
        assert net.heals == 1
        assert nemesis.state is PartitionState.HEALED

    def test_start_applies_scheme(self, ctx, net):
        nemesis = partition_halves().setup(ctx)
        result = nemesis.invoke(ctx, Operation.start())

        assert net.grudge() == halves(ctx.nodes)
        assert nemesis.state is PartitionState.PARTITIONED
        assert result.f is OpFunction.START
        assert result.value == "Cut off " + render_grudge(halves(ctx.nodes))

    def test_start_keeps_operation_type(self, ctx):
        op = Operation(OpFunction.START, type=OpType.INFO, process="nemesis")
        result = partition_halves().invoke(ctx, op)
        assert result.type is OpType.INFO
        assert result.process == "nemesis"

    def test_stop_heals(self, ctx, net):
        nemesis = partition_halves().setup(ctx)
        nemesis.invoke(ctx, Operation.start())
        result = nemesis.invoke(ctx, Operation.stop())

        assert net.drops == set()
        assert result.value == FULLY_CONNECTED
        assert nemesis.state is PartitionState.HEALED

    def test_second_start_layers_grudges(self, ctx, net):
        grudges = iter([{"n1": {"n2"}}, {"n3": {"n4"}}])
        nemesis = Partitioner(lambda nodes: next(grudges))

        nemesis.invoke(ctx, Operation.start())
        nemesis.invoke(ctx, Operation.start())

        assert net.drops == {("n2", "n1"), ("n4", "n3")}
        assert nemesis.state is PartitionState.PARTITIONED

    def test_teardown_heals(self, ctx, net):
        nemesis = partition_halves()
        nemesis.invoke(ctx, Operation.start())
        nemesis.teardown(ctx)
        assert net.drops == set()

    def test_scheme_receives_context_nodes(self, ctx):
        seen = []
        nemesis = Partitioner(lambda nodes: seen.append(nodes) or {})
        nemesis.invoke(ctx, Operation.start())
        assert seen == [ctx.nodes]

    def test_partly_applied_start_counts_as_partitioned(self, ctx, net):
        applied = net.drop

        def drop(ctx, src, dest):
            if dest == "n4":
                raise RemoteCommandError(dest, "iptables", 1)
            applied(ctx, src, dest)

        net.drop = drop
        nemesis = partition_halves()
        with pytest.raises(RemoteCommandError):
            nemesis.invoke(ctx, Operation.start())

        assert ("n3", "n1") in net.drops
        assert nemesis.state is PartitionState.PARTITIONED

        nemesis.invoke(ctx, Operation.stop())
        assert net.drops == set()
        assert nemesis.state is PartitionState.HEALED

    def test_failing_scheme_leaves_state_healed(self, ctx, net):
        def scheme(nodes):
            raise ValueError("too few nodes")

        nemesis = Partitioner(scheme)
        with pytest.raises(ValueError):
            nemesis.invoke(ctx, Operation.start())
        assert nemesis.state is PartitionState.HEALED
        assert net.drops == set()


class TestConstructors:
    @pytest.mark.parametrize(
        "make",
        [
            partition_halves,
            lambda: partition_random_halves(random.Random(1)),
            lambda: partition_random_node(random.Random(1)),
            lambda: partition_majorities_ring(random.Random(1)),
            partition_bridge,
        ],
    )
    def test_start_then_stop(self, make, ctx, net):
        nemesis = make().setup(ctx)
        nemesis.invoke(ctx, Operation.start())
        assert net.drops
        nemesis.invoke(ctx, Operation.stop())
        assert not net.drops

    def test_random_node_isolates_one(self, ctx, net):
        partition_random_node(random.Random(3)).invoke(ctx, Operation.start())
        applied = net.grudge()
        loners = [node for node, refused in applied.items() if len(refused) == len(ctx.nodes) - 1]
        assert len(loners) == 1
