"""ai-diary: task lifecycle client (task cache, remote sync, deadline composer)."""

__version__ = "0.1.0"
