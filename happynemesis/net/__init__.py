"""Network control collaborators."""

from happynemesis.net.net import IptablesNet, Net

__all__ = ["IptablesNet", "Net"]
