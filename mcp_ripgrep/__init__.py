"""MCP server exposing ripgrep search over client-granted roots."""

__version__ = "1.0.0"
