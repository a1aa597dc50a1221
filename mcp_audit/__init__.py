"""Governance audit for MCP server projects."""

__version__ = "0.1.0"
