"""Command-line interface for agentlint."""
