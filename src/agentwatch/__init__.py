"""agentwatch: find out which AI coding agent CLIs are installed, and how."""

__version__ = "0.1.0"
