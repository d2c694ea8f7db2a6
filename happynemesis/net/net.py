"""Network control: dropping and healing traffic between nodes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from happynemesis.core.control import Remote, on_many

if TYPE_CHECKING:
    from happynemesis.core.context import TestContext

logger = logging.getLogger(__name__)


@runtime_checkable
class Net(Protocol):
    """Protocol for the network layer a partition is built on."""

    def drop(self, ctx: TestContext, src: str, dest: str) -> None:
        """Make ``dest`` reject traffic whose stated origin is ``src``."""
        ...

    def heal(self, ctx: TestContext) -> None:
        """Remove every drop rule on every node. Idempotent."""
        ...


@dataclass(frozen=True)
class IptablesNet:
    """Drops traffic with iptables INPUT rules on the receiving node.

    Attributes:
        remote: Remote to run iptables through. None uses ``ctx.remote``.
    """

    remote: Remote | None = None

    def _remote(self, ctx: TestContext) -> Remote:
        return self.remote if self.remote is not None else ctx.remote

    def drop(self, ctx: TestContext, src: str, dest: str) -> None:
        self._remote(ctx).exec(dest, "iptables", "-A", "INPUT", "-s", src, "-j", "DROP", "-w", sudo=True)
        logger.debug("[Nemesis] %s now drops traffic from %s", dest, src, extra={"node": dest})

    def heal(self, ctx: TestContext) -> None:
        remote = self._remote(ctx)

        def flush(node: str) -> None:
            remote.exec(node, "iptables", "-F", "-w", sudo=True)
            remote.exec(node, "iptables", "-X", "-w", sudo=True)

        on_many(ctx.nodes, flush)
        logger.debug("[Nemesis] Flushed iptables on %d node(s)", len(ctx.nodes))
