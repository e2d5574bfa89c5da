"""git_ingest: turn a git working tree into a flat, LLM-ready text stream."""

__version__ = "0.3.0"
