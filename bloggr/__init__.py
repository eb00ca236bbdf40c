"""bloggr: client library and CLI for a small JSON-backed blog."""
__version__ = "0.1.0"
