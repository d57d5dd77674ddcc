"""Markdown task-tree engine with file-backed and in-memory stores."""

__version__ = "0.1.0"
