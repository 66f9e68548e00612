"""Tracer: project, task and agent management backend."""

__version__ = "0.1.0"
