"""Playwright MCP gateway server package."""
