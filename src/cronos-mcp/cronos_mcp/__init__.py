"""Cronos EVM chain reads over JSON-RPC and Cronoscan, exposed as an MCP server and CLI."""

__version__ = "0.1.0"
