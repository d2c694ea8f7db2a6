"""Fault protocol shared by every nemesis.

A fault is driven by the harness through three calls: ``setup`` once per
test before any operation, ``invoke`` for each ``start``/``stop`` operation,
and ``teardown`` once after the test.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from happynemesis.core.context import TestContext
    from happynemesis.core.operation import Operation

logger = logging.getLogger(__name__)


@runtime_checkable
class Fault(Protocol):
    """Protocol that all fault types implement."""

    def setup(self, ctx: TestContext, node: str | None = None) -> Fault:
        """Prepare the cluster for this fault.

        Args:
            ctx: The test context.
            node: Node the harness is setting up from, if any.

        Returns:
            The fault to use for the rest of the test (normally ``self``).
        """
        ...

    def invoke(self, ctx: TestContext, op: Operation) -> Operation:
        """Apply ``op`` and return it annotated with the effect."""
        ...

    def teardown(self, ctx: TestContext) -> None:
        """Release whatever the fault still holds at the end of the test."""
        ...


class Noop:
    """A fault that does nothing and returns operations unchanged."""

    def setup(self, ctx: TestContext, node: str | None = None) -> Noop:
        return self

    def invoke(self, ctx: TestContext, op: Operation) -> Operation:
        logger.debug("[Nemesis] noop %s", op.f.value)
        return op

    def teardown(self, ctx: TestContext) -> None:
        pass


def unknown_function(fault: object, op: Operation) -> ValueError:
    """Error for an operation function a fault does not handle."""
    return ValueError(f"{type(fault).__name__} cannot handle operation {op.f!r}")
