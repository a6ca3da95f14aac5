"""PagePilot - step-driven page agent with macro-tool dispatch."""

__version__ = "0.1.0"
