"""Unit tests for operations, the test context and the no-op fault."""

from __future__ import annotations

import pytest

from happynemesis.core.context import TestContext
from happynemesis.core.fault import Fault, Noop
from happynemesis.core.operation import OpFunction, Operation, OpType


class TestOperation:
    def test_constructors(self):
        assert Operation.start().f is OpFunction.START
        assert Operation.stop(process=3).process == 3
        assert Operation.start().type is OpType.INVOKE

    def test_with_value_returns_copy(self):
        op = Operation.start()
        annotated = op.with_value({"n1": 3}, type=OpType.INFO)

        assert op.value is None
        assert op.type is OpType.INVOKE
        assert annotated.value == {"n1": 3}
        assert annotated.type is OpType.INFO
        assert annotated.f is OpFunction.START

    def test_with_value_keeps_type_by_default(self):
        op = Operation(OpFunction.STOP, type=OpType.OK)
        assert op.with_value("done").type is OpType.OK

    def test_to_dict(self):
        assert Operation.stop(value="fully connected").to_dict() == {
            "f": "stop",
            "type": "invoke",
            "value": "fully connected",
            "process": None,
        }


class TestTestContext:
    def test_nodes_become_tuple(self, net, remote):
        ctx = TestContext(["a", "b"], net=net, remote=remote)
        assert ctx.nodes == ("a", "b")

    def test_requires_nodes(self, net, remote):
        with pytest.raises(ValueError):
            TestContext([], net=net, remote=remote)


class TestNoop:
    def test_lifecycle(self, ctx, net, remote):
        nemesis = Noop()
        assert isinstance(nemesis, Fault)
        assert nemesis.setup(ctx) is nemesis

        op = Operation.start()
        assert nemesis.invoke(ctx, op) is op
        nemesis.teardown(ctx)

        assert remote.commands == []
        assert net.heals == 0
