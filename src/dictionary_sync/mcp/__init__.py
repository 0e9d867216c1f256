"""MCP server exposing the synced dictionary over stdio."""
