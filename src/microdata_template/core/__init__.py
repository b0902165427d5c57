"""Core engine, configuration and shared utilities."""
