"""Semantic task search with LLM-assisted query enrichment and deterministic ranking."""

__version__ = "0.1.0"
