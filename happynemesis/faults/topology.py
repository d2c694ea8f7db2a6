"""Partition topologies.

Pure functions that decide who gets cut off from whom. Most of them produce
a *grudge*: a map from each node to the set of nodes whose traffic it should
drop. None of them perform I/O; a ``Partitioner`` applies the result.

Functions that involve randomness take an optional ``random.Random`` so a
test run can be reproduced from its seed.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Sequence

Grudge = dict[str, set[str]]
Scheme = Callable[[Sequence[str]], Grudge]


def majority(n: int) -> int:
    """Smallest number of nodes that is more than half of ``n``."""
    return n // 2 + 1


def bisect(nodes: Sequence[str]) -> tuple[list[str], list[str]]:
    """Cut ``nodes`` in half, keeping order; the smaller half comes first."""
    split = len(nodes) // 2
    nodes = list(nodes)
    return nodes[:split], nodes[split:]


def split_one(nodes: Sequence[str], rng: random.Random | None = None) -> tuple[list[str], list[str]]:
    """Pick one node at random and split it off from the rest."""
    if not nodes:
        raise ValueError("split_one requires at least one node")
    loner = (rng or random).choice(list(nodes))
    return [loner], [n for n in nodes if n != loner]


def complete_grudge(components: Iterable[Iterable[str]]) -> Grudge:
    """Grudge in which no node can hear from any node outside its component.

    Components are expected to be disjoint; their union is the universe.
    """
    components = [set(c) for c in components]
    universe = set().union(*components)
    grudge: Grudge = {}
    for component in components:
        for node in component:
            grudge[node] = universe - component
    return grudge


def bridge(nodes: Sequence[str]) -> Grudge:
    """Cut the network in half but keep one node connected to both sides.

    The bridge is the first node of the second half. It refuses nobody and
    nobody refuses it, while the two halves cannot hear each other.
    """
    if len(nodes) < 3:
        raise ValueError(f"bridge requires at least 3 nodes, got {len(nodes)}")
    first, second = bisect(nodes)
    bridge_node = second[0]
    grudge = complete_grudge([first, second])
    del grudge[bridge_node]
    return {node: refused - {bridge_node} for node, refused in grudge.items()}


def majorities_ring(nodes: Sequence[str], rng: random.Random | None = None) -> Grudge:
    """Every node sees a majority, but no two nodes see the same majority.

    Nodes are shuffled into a ring. Each node's visible majority is the window
    of ``majority(n)`` consecutive ring positions starting at that node, so any
    two windows overlap.
    """
    n = len(nodes)
    if n < 3:
        raise ValueError(f"majorities_ring requires at least 3 nodes, got {n}")
    universe = set(nodes)
    m = majority(n)
    ring = list(nodes)
    (rng or random).shuffle(ring)

    grudge: Grudge = {}
    for i in range(n):
        window = {ring[(i + j) % n] for j in range(m)}
        grudge[ring[i]] = universe - window
    return grudge


# Schemes: callables from the test's node list to a grudge.


def halves(nodes: Sequence[str]) -> Grudge:
    """First half of the node list versus the second half."""
    return complete_grudge(bisect(nodes))


def random_halves(rng: random.Random | None = None) -> Scheme:
    """Scheme splitting a random shuffle of the nodes into halves."""

    def scheme(nodes: Sequence[str]) -> Grudge:
        shuffled = list(nodes)
        (rng or random).shuffle(shuffled)
        return complete_grudge(bisect(shuffled))

    return scheme


def random_node(rng: random.Random | None = None) -> Scheme:
    """Scheme isolating one randomly chosen node."""

    def scheme(nodes: Sequence[str]) -> Grudge:
        return complete_grudge(split_one(nodes, rng))

    return scheme


def ring_majorities(rng: random.Random | None = None) -> Scheme:
    """Scheme wrapping ``majorities_ring``."""

    def scheme(nodes: Sequence[str]) -> Grudge:
        return majorities_ring(nodes, rng)

    return scheme
