"""CLI package for interacting with the reading log service."""
