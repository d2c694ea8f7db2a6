"""Connectivity views of a grudge.

Turns a grudge into a delivery matrix so reports and tests can reason about
who can still hear whom, and renders it as a heatmap.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from matplotlib.figure import Figure

    from happynemesis.faults.topology import Grudge


def _universe(grudge: Grudge, nodes: Iterable[str] | None) -> list[str]:
    if nodes is not None:
        return list(dict.fromkeys(nodes))
    seen = set(grudge)
    for refused in grudge.values():
        seen |= refused
    return sorted(seen)


def connectivity_frame(grudge: Grudge, nodes: Iterable[str] | None = None) -> pd.DataFrame:
    """Boolean delivery matrix for ``grudge``.

    Rows are receiving nodes, columns are sending nodes; a cell is True when
    the receiver accepts traffic from the sender.

    Args:
        grudge: Node to set of nodes it drops traffic from.
        nodes: Node order for rows and columns. Defaults to every node
            mentioned in the grudge, sorted.
    """
    universe = _universe(grudge, nodes)
    frame = pd.DataFrame(True, index=universe, columns=universe)
    known = set(universe)
    for receiver, refused in grudge.items():
        if receiver not in known:
            continue
        for sender in refused & known:
            frame.loc[receiver, sender] = False
    frame.index.name = "receiver"
    frame.columns.name = "sender"
    return frame


def reachable_from(grudge: Grudge, node: str, nodes: Iterable[str]) -> set[str]:
    """Nodes whose traffic ``node`` still accepts, including itself."""
    refused = grudge.get(node, set())
    return {n for n in nodes if n == node or n not in refused}


def plot_grudge(
    grudge: Grudge,
    nodes: Iterable[str] | None = None,
    path: str | Path | None = None,
    title: str | None = None,
) -> Figure:
    """Heatmap of the delivery matrix.

    When ``path`` is given the figure is saved there and closed, so it is no
    longer tracked by pyplot. Without a path the caller owns the open figure
    and should close it with ``plt.close(fig)``.
    """
    import matplotlib.pyplot as plt

    frame = connectivity_frame(grudge, nodes)
    size = max(4.0, 0.6 * len(frame))
    fig, ax = plt.subplots(figsize=(size, size))
    ax.imshow(frame.to_numpy(dtype=float), cmap="RdYlGn", vmin=0.0, vmax=1.0)
    ax.set_xticks(range(len(frame.columns)))
    ax.set_xticklabels(frame.columns, rotation=45, ha="right")
    ax.set_yticks(range(len(frame.index)))
    ax.set_yticklabels(frame.index)
    ax.set_xlabel("Sender")
    ax.set_ylabel("Receiver")
    ax.set_title(title or "Connectivity (green = delivered)")
    fig.tight_layout()

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150)
        plt.close(fig)
    return fig
