"""Command-line coding agent with sandboxed tools and code retrieval."""

__version__ = "0.1.0"
