"""Shift Pay MCP server."""
