"""Utility modules for agentwatch."""
