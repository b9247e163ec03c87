"""MCP adapter: exposes aiui services as FastMCP tools and resources."""
