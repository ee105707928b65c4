"""Command line interface for agentwatch."""
