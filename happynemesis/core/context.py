"""Test context handed to every fault operation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from happynemesis.core.control import Remote
    from happynemesis.net.net import Net


@dataclass(frozen=True)
class TestContext:
    """What a fault needs to know about the cluster under test.

    Attributes:
        nodes: Ordered node identifiers. Order only matters for ``bisect``.
        net: Network control collaborator used to drop and heal traffic.
        remote: Remote execution collaborator used to run node commands.
        name: Test name, for logging.
    """

    __test__ = False  # keep pytest from collecting this as a test class

    nodes: Sequence[str]
    net: Net
    remote: Remote
    name: str = ""

    def __post_init__(self) -> None:
        if not self.nodes:
            raise ValueError("TestContext requires at least one node")
        object.__setattr__(self, "nodes", tuple(self.nodes))
