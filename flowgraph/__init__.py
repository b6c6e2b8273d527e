"""Typed processor nodes wired into a dataflow graph and executed in topological order."""

__version__ = "0.1.0"
__all__ = ["graph", "processor"]