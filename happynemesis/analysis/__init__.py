"""Connectivity analysis of grudges."""

from happynemesis.analysis.connectivity import connectivity_frame, plot_grudge, reachable_from

__all__ = ["connectivity_frame", "plot_grudge", "reachable_from"]
